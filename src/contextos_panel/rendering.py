from __future__ import annotations
import functools
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union
from jinja2 import Environment
from markupsafe import Markup, escape
from .composer import compose_state
from .models import PromptStatus, SchemaType
from .state import PanelState, View
logger = logging.getLogger(__name__)
ActionFn = Callable[[Optional[str], Optional[str]], Union[None, Awaitable[Any], Any]]
STATUS_CLASSES = {
    PromptStatus.COMPLETED: "status-completed",
    PromptStatus.FAILED: "status-failed",
    PromptStatus.PROCESSING: "status-processing",
    PromptStatus.PENDING: "status-pending",
}
SCHEMA_BADGES = {
    SchemaType.BUSINESS: "badge-blue",
    SchemaType.ROLE_SPECIFIC: "badge-green",
    SchemaType.PROJECT_SPECIFIC: "badge-purple",
}
VIEW_TITLES = {
    View.FETCH: "Fetch Context",
    View.HISTORY: "Context History",
    View.SETTINGS: "Settings",
}
@dataclass(frozen=True)
class Control:
    id: str
    action: str
    arg: Optional[str] = None
    event: str = "click"
    rerender: bool = True
    value_from: Optional[str] = None
@dataclass(frozen=True)
class RenderedView:
    markup: str
    controls: Tuple[Control, ...]
    revision: int
    loading: bool = False
class StaleEventError(LookupError):
    """Raised when an event targets a control that the current snapshot does not contain."""
class HandlerTable:
    def __init__(self, generation: int, revision: int) -> None:
        self.generation = generation
        self.revision = revision
        self._handlers: Dict[str, Tuple[Control, Callable[[Optional[str]], Any]]] = {}
    def add(self, control: Control, handler: Callable[[Optional[str]], Any]) -> None:
        if control.id in self._handlers:
            raise ValueError(f"Control {control.id!r} bound twice in one snapshot")
        self._handlers[control.id] = (control, handler)
    def __len__(self) -> int:
        return len(self._handlers)
    def __contains__(self, control_id: object) -> bool:
        return control_id in self._handlers
    def control_ids(self) -> List[str]:
        return list(self._handlers)
    def lookup(self, control_id: str, generation: Optional[int] = None) -> Tuple[Control, Callable[[Optional[str]], Any]]:
        entry = self._handlers.get(control_id)
        if entry is None:
            raise StaleEventError(f"Unknown control {control_id!r}")
        control, handler = entry
        if generation is not None and generation != self.generation and control.rerender:
            raise StaleEventError(f"Control {control_id!r} belongs to snapshot {generation}, current is {self.generation}")
        return control, handler
def _invoke(action: ActionFn, arg: Optional[str], value: Optional[str]) -> Any:
    return action(arg, value)
def bind(view: RenderedView, resolve: Callable[[str], ActionFn], generation: int) -> HandlerTable:
    table = HandlerTable(generation, view.revision)
    for control in view.controls:
        table.add(control, functools.partial(_invoke, resolve(control.action), control.arg))
    logger.debug("Bound %d handlers for snapshot %d", len(table), generation)
    return table
class _ControlCollector:
    def __init__(self) -> None:
        self.controls: Dict[str, Control] = {}
    def __call__(
        self,
        action: str,
        arg: Any = None,
        *,
        event: str = "click",
        rerender: bool = True,
        value_from: Optional[str] = None,
    ) -> Markup:
        arg_text = None if arg is None else str(arg)
        control_id = action if arg_text is None else f"{action}:{arg_text}"
        control = Control(control_id, action, arg_text, event, rerender, value_from)
        self.controls.setdefault(control_id, control)
        attrs = f' data-control="{escape(control_id)}" data-event="{escape(event)}"'
        if not rerender:
            attrs += ' data-rerender="0"'
        if value_from:
            attrs += f' data-value-from="{escape(value_from)}"'
        return Markup(attrs)
def format_date(value: str) -> str:
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime("%b %d, %I:%M %p")
def status_class(status: Any) -> str:
    return STATUS_CLASSES.get(status, "status-default")
def badge_class(schema_type: Any) -> str:
    return SCHEMA_BADGES.get(schema_type, "badge-gray")
class ViewRenderer:
    """Turns a PanelState into one full markup snapshot plus its interactive controls."""
    def __init__(self) -> None:
        env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)
        env.filters["format_date"] = format_date
        env.filters["status_class"] = status_class
        env.filters["badge_class"] = badge_class
        self._template = env.from_string(PANEL_TEMPLATE)
    def render(self, state: PanelState) -> RenderedView:
        ctl = _ControlCollector()
        show_footer = state.is_authenticated and bool(state.enhanced_prompt) and state.current_view == View.FETCH
        markup = self._template.render(
            s=state,
            ctl=ctl,
            View=View,
            title=VIEW_TITLES[state.current_view],
            composite=compose_state(state) if show_footer else "",
            show_footer=show_footer,
            selected_count=sum(1 for c in state.file_contexts if c.selected),
        )
        return RenderedView(markup, tuple(ctl.controls.values()), state.revision, state.loading)
PANEL_TEMPLATE = """
{% macro error_box() %}
{% if s.error %}
<div class="box box-error"><div class="box-body row"><span class="grow">{{ s.error }}</span><button class="header-btn"{{ ctl('dismiss-error') }} title="Dismiss">&times;</button></div></div>
{% endif %}
{% endmacro %}
<div class="panel{% if s.is_fullscreen %} full{% endif %}{% if s.is_collapsed %} collapsed{% endif %}">
  <div class="ribbon">
    <button{{ ctl('toggle-collapse') }} title="{{ 'Expand' if s.is_collapsed else 'Collapse' }}">{{ '&#10216;'|safe if s.is_collapsed else '&#10217;'|safe }}</button>
    <button{{ ctl('nav', 'fetch') }} class="{{ 'active' if s.current_view == View.FETCH }}" title="Fetch">&#9889;</button>
    {% if s.is_authenticated %}
    <button{{ ctl('nav', 'history') }} class="{{ 'active' if s.current_view == View.HISTORY }}" title="History">&#128344;</button>
    {% endif %}
    <button{{ ctl('nav', 'settings') }} class="{{ 'active' if s.current_view == View.SETTINGS }}" title="Settings">&#9881;</button>
  </div>
  <div class="main">
    <div class="header">
      <div class="title">{{ title }}</div>
      <div class="actions">
        {% if s.is_authenticated and s.current_view == View.FETCH %}
        <button class="btn btn-primary"{{ ctl('new-prompt') }}>+ NEW</button>
        {% endif %}
        <button class="header-btn"{{ ctl('fullscreen') }} title="Toggle fullscreen">{{ '&#10530;'|safe if s.is_fullscreen else '&#10529;'|safe }}</button>
        <button class="header-btn"{{ ctl('close') }} title="Close">&times;</button>
      </div>
    </div>
    {% if s.current_prompt and s.current_prompt.status.in_flight %}
    <div class="box status-banner">
      <div class="box-body row">
        <span class="spinner"></span>
        <div class="grow">
          <div class="banner-title">{{ 'Processing your prompt...' if s.current_prompt.status.value == 'pending' else 'Enhancing with context...' }}</div>
          <div class="muted-sm">This may take a few moments</div>
        </div>
        <div class="status {{ s.current_prompt.status|status_class }}">{{ s.current_prompt.status.value }}</div>
      </div>
    </div>
    {% endif %}
    <div class="content">
    {% if s.current_view == View.SETTINGS %}
      <div class="section">
        <label class="muted" for="ctx-settings-apikey">API Key</label>
        <input id="ctx-settings-apikey" class="input" type="password" placeholder="Enter your API key" value="{{ s.api_key }}">
        <div class="muted-sm">Your settings are stored locally on this machine</div>
        {{ error_box() }}
        <div class="row">
          <button class="btn btn-outline grow"{{ ctl('settings-cancel') }}>Cancel</button>
          <button class="btn btn-primary grow"{{ ctl('settings-save', value_from='#ctx-settings-apikey') }}>Save</button>
        </div>
        {% if s.is_authenticated %}
        <div class="divider"></div>
        <button class="btn btn-danger"{{ ctl('disconnect') }}>Disconnect API Key</button>
        {% endif %}
      </div>
    {% elif s.current_view == View.HISTORY and s.is_authenticated %}
      <div class="section">
        <div class="row">
          <button class="header-btn"{{ ctl('history-refresh') }}{% if s.history_loading %} disabled{% endif %} title="Refresh">&#8635;</button>
          <input id="ctx-history-search" class="input grow" placeholder="Search prompts..." value="{{ s.history_search }}" data-enter-control="history-refresh"{{ ctl('history-search', event='input', rerender=False) }}>
        </div>
        {{ error_box() }}
        {% if s.history_loading %}
        <div class="muted-sm center">Loading history...</div>
        {% elif not s.prompt_history %}
        <div class="muted-sm center">{{ 'No prompts match your filters' if s.history_search else 'No prompt history yet' }}</div>
        {% else %}
        {% for p in s.prompt_history %}
        <button class="history-item"{{ ctl('open-history', p.id) }}>
          <div class="history-title">{{ p.original_prompt }}</div>
          <div class="row">
            <span class="status {{ p.status|status_class }}">{{ p.status.value }}</span>
            <span class="muted-sm">{{ p.created_at|format_date }}</span>
          </div>
          {% if p.enriched_prompt %}
          <div class="muted-sm">Enhanced: {{ p.enriched_prompt[:100] }}...</div>
          {% endif %}
        </button>
        {% endfor %}
        {% endif %}
      </div>
    {% elif not s.is_authenticated %}
      <div class="section">
        <div class="center">
          <div class="gate-title">API Configuration Required</div>
          <div class="muted">Enter your ContextOS API key</div>
        </div>
        <label class="muted" for="ctx-api-key">API Key</label>
        <input id="ctx-api-key" class="input" type="password" placeholder="Enter your API key">
        {{ error_box() }}
        <button class="btn btn-primary wide"{{ ctl('connect', value_from='#ctx-api-key') }}>Connect</button>
      </div>
    {% else %}
      <div class="section">
        <div class="box">
          <div class="box-body">
            <textarea id="ctx-original-prompt" class="textarea" rows="3" placeholder="Write a prompt to get started"{{ ctl('prompt-text', event='input', rerender=False) }}>{{ s.original_prompt }}</textarea>
          </div>
          <div class="box-body row box-footer">
            <button class="btn-pill"{{ ctl('toggle-context') }} title="Add context">+</button>
            <div class="grow">
              {% for schema in s.selected_schema_objects %}
              <span class="tag {{ schema.type|badge_class }}">{{ schema.name }} <button class="btn-pill"{{ ctl('remove-schema', schema.id) }}>x</button></span>
              {% endfor %}
            </div>
            <button class="btn btn-send"{{ ctl('submit') }}{% if s.loading or not s.selected_schemas %} disabled{% endif %} title="Send">&#10148;</button>
          </div>
        </div>
        {% if s.show_context_selection %}
        <div class="box">
          <div class="box-header row">
            <div class="grow box-title">Select Contexts</div>
            <button class="header-btn"{{ ctl('close-context') }} title="Close">&times;</button>
          </div>
          <div class="box-body">
            <input id="ctx-context-search" class="input" placeholder="Search contexts..." value="{{ s.context_search_term }}"{{ ctl('context-search', event='change') }}>
          </div>
          <div class="box-body scroll">
            {% set filtered = s.filtered_schemas %}
            {% if s.schemas_loading and not s.schemas %}
            <div class="muted center">Loading contexts...</div>
            {% elif not filtered %}
            <div class="muted center">{{ 'No contexts match your search' if s.context_search_term else 'No contexts available' }}</div>
            {% else %}
            {% for schema in filtered %}
            <button class="schema-item"{{ ctl('add-schema', schema.id) }}>
              <div class="grow">
                <div class="row"><strong>{{ schema.name }}</strong>{% if schema.type %} <span class="tag {{ schema.type|badge_class }}">{{ schema.type.value }}</span>{% endif %}</div>
                <div class="muted-sm">{{ schema.company_name }}</div>
                <div class="muted-sm">{{ schema.description }}</div>
              </div>
              {% if schema.id in s.selected_schemas %}<span class="status status-completed">Selected</span>{% endif %}
            </button>
            {% endfor %}
            {% endif %}
          </div>
        </div>
        {% endif %}
        {% if s.file_contexts %}
        <div class="box box-files">
          <button class="box-body row wide"{{ ctl('filectx-toggle') }}>
            <span class="grow">File Context ({{ selected_count }}/{{ s.file_contexts|length }} selected)</span>
            <span>{{ '&#9652;'|safe if s.show_file_context else '&#9662;'|safe }}</span>
          </button>
          {% if s.show_file_context %}
          <div class="box-body scroll">
            {% for extract in s.file_contexts %}
            <div class="extract{% if extract.selected %} selected{% endif %}"{{ ctl('toggle-extract', extract.id) }}>
              <div class="row"><span class="muted grow">{{ extract.source }}</span>{% if extract.selected %}<span class="status status-processing">Selected</span>{% endif %}</div>
              <div class="code">{{ extract.content }}</div>
            </div>
            {% endfor %}
            {% if selected_count %}
            <div class="muted">{{ selected_count }} extract(s) will be added to your enhanced prompt</div>
            {% endif %}
          </div>
          {% endif %}
        </div>
        {% endif %}
        {% if s.questions %}
        {% set updating = s.submitted_answers|length > 0 %}
        <div class="box box-questions">
          <button class="box-body row wide"{{ ctl('qa-toggle') }}>
            <span class="grow">{{ 'Update Answers' if updating else 'Additional Questions' }} ({{ s.questions|length }})</span>
            <span>{{ '&#9652;'|safe if s.show_questions else '&#9662;'|safe }}</span>
          </button>
          {% if s.show_questions %}
          <div class="box-body">
            {% for qa in s.questions %}
            <label class="muted question">{{ qa.question }}</label>
            <textarea class="input" rows="2" placeholder="{{ 'Update your answer...' if updating else 'Enter your answer...' }}"{{ ctl('answer', loop.index0, event='input', rerender=False) }}>{{ qa.answer }}</textarea>
            {% endfor %}
            <div class="row">
              <button class="btn btn-primary grow"{{ ctl('qa-submit') }}{% if s.submitting_answers %} disabled{% endif %}>{{ 'Submitting...' if s.submitting_answers else ('Update' if updating else 'Submit') }}</button>
              <button class="btn btn-outline"{{ ctl('qa-skip') }}>{{ 'Cancel' if updating else 'Skip' }}</button>
            </div>
          </div>
          {% endif %}
        </div>
        {% endif %}
        {{ error_box() }}
      </div>
    {% endif %}
    </div>
    {% if show_footer %}
    <div class="box footer">
      <div class="box-body row">
        <label class="grow box-title">Enhanced Prompt</label>
        <button class="copy{% if s.copied_prompt %} copied{% endif %}" data-copy-target="#ctx-composite"{{ ctl('copy') }}>{{ 'Copied!' if s.copied_prompt else 'Copy' }}</button>
        <a class="muted-sm" href="export.docx">Export .docx</a>
      </div>
      <div class="box-body scroll"><div id="ctx-composite" class="code">{{ composite }}</div></div>
    </div>
    {% endif %}
  </div>
</div>
"""
