"""
Authorize filter: the authentication pipeline step around the evaluator.
"""

from typing import Dict, Any, Mapping, Optional

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.errors import ValidationError

from .rules.builder import build_filter_config
from .rules.engine import AuthorizationEvaluator, first_value
from .rules.models import FilterConfig
from .handoff import UnauthorizedHandoff

# Pipeline state keys written by the filter
REJECT_MSG_KEY = "authprocAuthorize_reject_msg"
ERROR_URL_KEY = "authprocAuthorize_errorURL"
ALLOW_REAUTHENTICATION_KEY = "authprocAuthorize_allow_reauthentication"
USER_ATTRIBUTE_KEY = "authprocAuthorize_user_attribute"
CONTEXT_KEY = "authprocAuthorize_ctx"


class AuthorizeFilter:
    """Authorizes principals by their asserted attributes."""

    def __init__(self, config: FilterConfig, handoff: UnauthorizedHandoff):
        self.config = config
        self.handoff = handoff
        self.evaluator = AuthorizationEvaluator()
        self.logger = get_logger("authorize.filter")

    @classmethod
    def from_config(
        cls,
        raw: Mapping[str, Any],
        state_store: Any,
        redirector: Any,
        settings: Optional[ServiceConfig] = None
    ) -> "AuthorizeFilter":
        """Build a filter from raw configuration.

        Raises ConfigurationError when the rules are malformed or the
        application name or login URL is missing.
        """
        if settings is None:
            settings = get_config("authorize")
            configure_logging(settings.service_name, settings.log_level)

        config = build_filter_config(raw)
        handoff = UnauthorizedHandoff(
            app_name=config.app_name,
            login_url=config.login_url,
            state_store=state_store,
            redirector=redirector,
            error_path=settings.error_path
        )
        return cls(config, handoff)

    def process(self, state: Dict[str, Any]) -> Any:
        """Apply the filter to the pipeline state.

        Returns None when the principal is authorized, otherwise the
        handoff's redirect.
        """
        if "Attributes" not in state or state["Attributes"] is None:
            raise ValidationError("State has no Attributes to authorize")

        set_request_id(state.get("StateId"))
        try:
            return self._process(state)
        finally:
            clear_context()

    def _process(self, state: Dict[str, Any]) -> Any:
        attributes = state["Attributes"]

        if self.config.reject_msg:
            state[REJECT_MSG_KEY] = self.config.reject_msg
        state[ERROR_URL_KEY] = self.config.error_url
        state[ALLOW_REAUTHENTICATION_KEY] = self.config.allow_reauthentication

        verdict = self.evaluator.evaluate(self.config.evaluator, attributes)
        if verdict.authorized:
            return None

        show = self.config.show_user_attribute
        if show is not None and show in attributes:
            user_attribute = first_value(attributes[show])
            if user_attribute is not None:
                state[USER_ATTRIBUTE_KEY] = user_attribute

        state[CONTEXT_KEY] = verdict.context

        self.logger.warning(
            "Principal not authorized",
            context=verdict.context,
            denied=sorted(verdict.denied_attribute_names)
        )

        return self.handoff.handle(state)


def reject_message(
    state: Mapping[str, Any],
    language: Optional[str] = None,
    default_language: str = "en"
) -> Optional[str]:
    """Localized rejection message stored in the state by the filter.

    Falls back to the default language, then to any configured message.
    """
    messages = state.get(REJECT_MSG_KEY) or {}
    if not messages:
        return None

    for candidate in (language, default_language):
        if candidate and candidate in messages:
            return messages[candidate]

    return next(iter(messages.values()))
