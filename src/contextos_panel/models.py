from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple
class SchemaType(str, Enum):
    BUSINESS = "business"
    ROLE_SPECIFIC = "role-specific"
    PROJECT_SPECIFIC = "project-specific"
    OTHER = "other"
    @classmethod
    def parse(cls, value: Any) -> Optional["SchemaType"]:
        raw = str(value or "").strip().lower()
        if not raw:
            return None
        try:
            return cls(raw)
        except ValueError:
            return cls.OTHER
class PromptStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    @classmethod
    def parse(cls, value: Any) -> "PromptStatus":
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.PENDING
    @property
    def in_flight(self) -> bool:
        return self in (PromptStatus.PENDING, PromptStatus.PROCESSING)
def _str_list(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(item) for item in value if item is not None and str(item).strip())
def _text(value: Any) -> str:
    return "" if value is None else str(value)
@dataclass(frozen=True)
class Schema:
    id: str
    name: str
    company_name: str
    type: Optional[SchemaType] = None
    target_audience: Tuple[str, ...] = ()
    key_goals: Tuple[str, ...] = ()
    description: str = ""
    is_published: bool = True
    @classmethod
    def from_json(cls, data: dict) -> "Schema":
        return cls(
            id=_text(data.get("id")),
            name=_text(data.get("name")),
            company_name=_text(data.get("companyName") or data.get("company_name")),
            type=SchemaType.parse(data.get("type")),
            target_audience=_str_list(data.get("targetAudience") or data.get("target_audience")),
            key_goals=_str_list(data.get("keyGoals") or data.get("key_goals")),
            description=_text(data.get("description")),
            is_published=bool(data.get("isPublished", data.get("is_published", False))),
        )
    def matches(self, term: str) -> bool:
        q = (term or "").lower()
        type_label = self.type.value if self.type else ""
        return q in self.name.lower() or q in self.company_name.lower() or q in type_label
@dataclass(frozen=True)
class QuestionAnswer:
    question: str
    answer: str = ""
    @classmethod
    def from_json(cls, data: Any) -> Optional["QuestionAnswer"]:
        if not isinstance(data, dict):
            return None
        question = _text(data.get("question")).strip()
        if not question:
            return None
        return cls(question=question, answer=_text(data.get("answer")))
    def to_json(self) -> dict:
        return {"question": self.question, "answer": self.answer}
@dataclass(frozen=True)
class ContextEntry:
    source: str
    content: str
@dataclass(frozen=True)
class FileContextExtract:
    id: str
    source: str
    content: str
    selected: bool = False
@dataclass(frozen=True)
class Prompt:
    status: PromptStatus = PromptStatus.PENDING
    id: Optional[str] = None
    original_prompt: str = ""
    enriched_prompt: str = ""
    schemas_used: Tuple[str, ...] = ()
    questions_answers: Tuple[QuestionAnswer, ...] = ()
    context: Tuple[ContextEntry, ...] = ()
    created_at: str = ""
    @classmethod
    def from_json(cls, data: dict) -> "Prompt":
        raw_id = data.get("id")
        questions = tuple(
            qa for qa in (QuestionAnswer.from_json(item) for item in data.get("questions_answers") or [])
            if qa is not None
        )
        context: List[ContextEntry] = []
        raw_context = data.get("context")
        if isinstance(raw_context, list):
            for item in raw_context:
                if isinstance(item, dict):
                    context.append(ContextEntry(source=_text(item.get("source")), content=_text(item.get("content"))))
        return cls(
            status=PromptStatus.parse(data.get("status")),
            id=None if raw_id is None else str(raw_id),
            original_prompt=_text(data.get("original_prompt")),
            enriched_prompt=_text(data.get("enriched_prompt")),
            schemas_used=_str_list(data.get("schemas_used")),
            questions_answers=questions,
            context=tuple(context),
            created_at=_text(data.get("created_at")),
        )
    def extracts(self) -> List[FileContextExtract]:
        return [
            FileContextExtract(id=f"{self.id}_{index}", source=entry.source, content=entry.content)
            for index, entry in enumerate(self.context)
        ]
HistoryEntry = Prompt
@dataclass
class PromptDraft:
    text: str
    schema_ids: List[str] = field(default_factory=list)
    def to_json(self) -> dict:
        payload: dict = {"prompt": self.text.strip()}
        if self.schema_ids:
            payload["schemaIds"] = list(self.schema_ids)
        return payload
