from __future__ import annotations
from typing import Iterable, List, Sequence
from .models import QuestionAnswer, Schema
SCHEMA_SEPARATOR = " | "
def _schema_line(schema: Schema) -> str:
    parts: List[str] = [f"Business Name: {schema.company_name}"]
    if schema.target_audience:
        parts.append(f"Target Personas: {', '.join(schema.target_audience)}")
    if schema.type:
        parts.append(f"Context Type: {schema.type.value}")
    if schema.key_goals:
        parts.append(f"Key Goals: {', '.join(schema.key_goals)}")
    return "; ".join(parts)
def additional_context(schemas: Sequence[Schema], selected_ids: Iterable[str]) -> str:
    wanted = set(selected_ids)
    if not wanted:
        return ""
    selected = [schema for schema in schemas if schema.id in wanted]
    if not selected:
        return ""
    return "\n\nADDITIONAL CONTEXT: " + SCHEMA_SEPARATOR.join(_schema_line(s) for s in selected)
def file_context(extracts: Sequence[str]) -> str:
    if not extracts:
        return ""
    joined = "\n\n".join(extracts)
    return f"\n\nSUPPLEMENTARY EXTRACTS:\n{joined}" if joined else ""
def qa_context(answers: Sequence[QuestionAnswer]) -> str:
    blocks = [
        f"Q: {qa.question}\nA: {qa.answer}"
        for qa in answers or ()
        if isinstance(qa.answer, str) and qa.answer.strip()
    ]
    return "\n\nQ&A CONTEXT:\n" + "\n\n".join(blocks) if blocks else ""
def compose(
    enhanced: str,
    schemas: Sequence[Schema],
    selected_ids: Iterable[str],
    extracts: Sequence[str],
    answers: Sequence[QuestionAnswer],
) -> str:
    return (
        (enhanced or "")
        + additional_context(schemas, selected_ids)
        + file_context(extracts)
        + qa_context(answers)
    )
def compose_state(state) -> str:
    return compose(
        state.enhanced_prompt,
        state.schemas,
        state.selected_schemas,
        state.selected_file_extracts,
        state.submitted_answers,
    )
