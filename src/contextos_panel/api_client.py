from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence
from urllib import error, parse, request
from .errors import AuthError, NetworkError
from .models import Prompt, PromptDraft, QuestionAnswer, Schema
logger = logging.getLogger(__name__)
AUTH_STATUS_CODES = {401, 403}
@dataclass
class ContextOSClient:
    api_key: str
    base_url: str = "https://uycbruvaxgawpmdddqry.supabase.co"
    timeout: float = 30.0
    DEFAULT_BASE_URL = "https://uycbruvaxgawpmdddqry.supabase.co"
    SCHEMAS_PATH = "functions/v1/user-schemas-api"
    SUBMIT_PATH = "functions/v1/submit-prompt"
    RETRIEVE_PATH = "functions/v1/retrieve-prompts"
    RESPOND_PATH = "functions/v1/respond-prompt"
    def list_schemas(self) -> List[Schema]:
        data = self._request("GET", self.SCHEMAS_PATH, fallback="Failed to load schemas")
        raw = data.get("schemas") if isinstance(data, dict) else None
        schemas = [Schema.from_json(item) for item in raw or [] if isinstance(item, dict)]
        return [schema for schema in schemas if schema.is_published]
    def submit_prompt(self, draft: PromptDraft) -> str:
        data = self._request("POST", self.SUBMIT_PATH, body=draft.to_json(), fallback="Failed to submit prompt")
        prompt_id = data.get("prompt_id") if isinstance(data, dict) else None
        if not prompt_id:
            raise NetworkError("Failed to submit prompt")
        return str(prompt_id)
    def retrieve_prompt(self, prompt_id: str) -> Prompt:
        path = f"{self.RETRIEVE_PATH}/{parse.quote(str(prompt_id), safe='')}"
        data = self._request("GET", path, fallback="Failed to retrieve prompt")
        if not isinstance(data, dict):
            raise NetworkError("Failed to retrieve prompt")
        prompt = Prompt.from_json(data)
        if prompt.id is None:
            prompt = Prompt.from_json({**data, "id": prompt_id})
        return prompt
    def list_prompts(self, search: str = "") -> List[Prompt]:
        query = {"status": "completed"}
        if search and search.strip():
            query["search"] = search.strip()
        data = self._request("GET", self.RETRIEVE_PATH, query=query, fallback="Failed to load history")
        if isinstance(data, dict):
            data = data.get("prompts")
        if not isinstance(data, list):
            return []
        return [Prompt.from_json(item) for item in data if isinstance(item, dict)]
    def submit_answers(self, prompt_id: str, answers: Sequence[QuestionAnswer]) -> Optional[Prompt]:
        path = f"{self.RESPOND_PATH}/{parse.quote(str(prompt_id), safe='')}"
        body = [qa.to_json() for qa in answers]
        data = self._request("POST", path, body=body, fallback="Failed to submit answers")
        if isinstance(data, dict) and data.get("status"):
            return Prompt.from_json(data)
        return None
    def _url(self, path: str, query: Optional[dict] = None) -> str:
        params = dict(query or {})
        params["api_key"] = self.api_key
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}?{parse.urlencode(params)}"
    def _request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        query: Optional[dict] = None,
        fallback: str,
    ) -> Any:
        if not self.api_key or not self.api_key.strip():
            raise AuthError("API key is not configured")
        url = self._url(path, query)
        headers = {"Accept": "application/json"}
        payload = None
        if body is not None:
            payload = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"
        logger.debug("ContextOS request: %s %s payload=%s", method, path, body)
        req = request.Request(url, data=payload, headers=headers, method=method)
        try:
            with request.urlopen(req, timeout=self.timeout) as resp:  # nosec: B310
                raw = resp.read().decode("utf-8")
        except error.HTTPError as exc:
            message = self._error_message(exc) or fallback
            logger.warning("ContextOS %s %s failed (%s): %s", method, path, exc.code, message)
            if exc.code in AUTH_STATUS_CODES:
                raise AuthError(message, status_code=exc.code) from exc
            raise NetworkError(message, status_code=exc.code) from exc
        except (error.URLError, OSError) as exc:
            logger.warning("ContextOS connection error on %s %s: %s", method, path, exc)
            raise NetworkError(fallback) from exc
        logger.debug("ContextOS response body: %s", raw)
        if not raw.strip():
            return {}
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise NetworkError(fallback) from exc
    @staticmethod
    def _error_message(exc: error.HTTPError) -> str:
        try:
            raw = exc.read()
        except OSError:
            return ""
        if not raw:
            return ""
        try:
            data = json.loads(raw.decode("utf-8", errors="ignore"))
        except (json.JSONDecodeError, ValueError):
            return ""
        if isinstance(data, dict) and data.get("error"):
            return str(data["error"])
        return ""
