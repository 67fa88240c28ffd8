"""
Unauthorized handoff for the authorize filter.

When a principal is denied, the pipeline state is saved under an opaque
identifier and the user agent is redirected to the unauthorized endpoint
of the identity provider, carrying the application name and the login URL
to return to once the principal has stepped up.
"""

import copy
import uuid
from typing import Dict, Any, Optional

from fastapi.responses import RedirectResponse
from fastapi.datastructures import URL

from shared.logging import get_logger
from shared.errors import ConfigurationError, ValidationError

STATE_STAGE = "authorize:Authorize"


class InMemoryStateStore:
    """Keeps saved pipeline states in process memory."""

    def __init__(self):
        self.logger = get_logger("authorize.state_store")
        self.states: Dict[str, Dict[str, Any]] = {}

    def save_state(self, state: Dict[str, Any], stage: str) -> str:
        """Save a copy of the state and return its identifier."""
        state_id = str(uuid.uuid4())
        saved = copy.deepcopy(state)
        saved["_stage"] = stage
        self.states[state_id] = saved

        self.logger.info("State saved", state_id=state_id, stage=stage)
        return state_id

    def load_state(self, state_id: str, stage: str) -> Optional[Dict[str, Any]]:
        """Load a saved state, or None when unknown or saved by another stage."""
        saved = self.states.get(state_id)
        if saved is None or saved.get("_stage") != stage:
            return None
        state = copy.deepcopy(saved)
        del state["_stage"]
        return state


class HTTPRedirector:
    """Builds redirect responses to trusted URLs."""

    def __init__(self, status_code: int = 303):
        self.status_code = status_code

    def redirect_trusted_url(self, url: str, params: Dict[str, str]) -> RedirectResponse:
        """Redirect to url with params appended to its query string."""
        target = URL(url).include_query_params(**params)
        return RedirectResponse(url=str(target), status_code=self.status_code)


class UnauthorizedHandoff:
    """Saves state and redirects a denied principal."""

    def __init__(
        self,
        app_name: Optional[str],
        login_url: Optional[str],
        state_store: Any,
        redirector: Any,
        error_path: str = "/amsLogin/ssoError"
    ):
        if not app_name:
            raise ConfigurationError("Filter Authorize: appName is required")
        if not login_url:
            raise ConfigurationError("Filter Authorize: loginURL is required")

        self.app_name = app_name
        self.login_url = login_url
        self.state_store = state_store
        self.redirector = redirector
        self.error_path = error_path
        self.logger = get_logger("authorize.handoff")

    def unauthorized_url(self, state: Dict[str, Any]) -> str:
        """Unauthorized endpoint on the identity provider that issued the assertion."""
        entity_id = (state.get("Source") or {}).get("entityid")
        if not isinstance(entity_id, str) or not entity_id:
            raise ValidationError("State has no Source entityid to redirect to")

        # Trailing slash, space or NUL
        return entity_id.rstrip(" /\0") + self.error_path

    def handle(self, state: Dict[str, Any]) -> Any:
        """Save state and redirect to the unauthorized endpoint."""
        url = self.unauthorized_url(state)
        state_id = self.state_store.save_state(state, STATE_STAGE)

        self.logger.info(
            "Redirecting unauthorized principal",
            state_id=state_id,
            url=url,
            app_name=self.app_name
        )

        return self.redirector.redirect_trusted_url(
            url,
            {"appName": self.app_name, "TARGET": self.login_url}
        )
