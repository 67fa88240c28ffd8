"""
Rule-set builder: turns raw filter configuration into typed rules.
"""

from typing import Any, Dict, Mapping

from pydantic import TypeAdapter, ValidationError as SchemaError

from shared.logging import get_logger
from shared.errors import ConfigurationError
from .coercion import to_number
from .models import Rule, RuleDefinition, EvaluatorConfig, FilterConfig

logger = get_logger("authorize.rule_builder")

_rule_definition = TypeAdapter(RuleDefinition)

# Control keys and the type each must have to be read as a control key.
# A control key with any other type is parsed as a rule definition.
RESERVED_KEYS = {
    "deny": bool,
    "reject_msg": (Mapping, list, tuple),
    "appName": str,
    "loginURL": str,
    "errorURL": bool,
    "allow_reauthentication": bool,
    "show_user_attribute": str,
}


def build_filter_config(raw: Mapping[str, Any]) -> FilterConfig:
    """Validate raw filter configuration and build a FilterConfig.

    Raises:
        ConfigurationError: a rule definition is neither a string nor a
            flat collection of strings.
    """
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            "Filter Authorize: configuration must be a mapping",
            details={"type": type(raw).__name__}
        )

    controls: Dict[str, Any] = {}
    rules: Dict[str, Rule] = {}

    for key, value in raw.items():
        expected = RESERVED_KEYS.get(key)
        if expected is not None and isinstance(value, expected):
            controls[key] = value
            continue

        # Re-definitions keep their first position, like a mapping would.
        rules[key] = build_rule(key, value)

    # "deny" reads as "deny principals a rule matches", so the evaluator
    # starts from allow when it is set and from deny otherwise.
    evaluator = EvaluatorConfig(
        default_deny=not controls.get("deny", False),
        rules=tuple(rules.values())
    )

    logger.info(
        "Authorization rules built",
        total_rules=len(evaluator.rules),
        active_rules=len([r for r in evaluator.rules if r.is_active]),
        default_deny=evaluator.default_deny
    )

    return FilterConfig(
        evaluator=evaluator,
        reject_msg=_reject_messages(controls.get("reject_msg", {})),
        app_name=controls.get("appName"),
        login_url=controls.get("loginURL"),
        error_url=controls.get("errorURL", True),
        allow_reauthentication=controls.get("allow_reauthentication", False),
        show_user_attribute=controls.get("show_user_attribute"),
    )


def build_evaluator_config(raw: Mapping[str, Any]) -> EvaluatorConfig:
    """Build only the evaluator part of the configuration."""
    return build_filter_config(raw).evaluator


def _reject_messages(messages: Any) -> Dict[str, str]:
    """Language-keyed rejection messages; a list is keyed by position."""
    if isinstance(messages, Mapping):
        return dict(messages)
    return {str(index): message for index, message in enumerate(messages)}


def build_rule(attribute: str, definition: Any) -> Rule:
    """Build one rule from its raw definition."""
    if not isinstance(attribute, str) or not attribute:
        raise ConfigurationError(
            f"Filter Authorize: Attribute name must be a non-empty string: {attribute!r}",
            details={"attribute": repr(attribute)}
        )

    try:
        values = _rule_definition.validate_python(definition)
    except SchemaError as e:
        raise ConfigurationError(
            f"Filter Authorize: Attribute values is neither string nor a flat "
            f"collection of strings: {attribute!r}",
            details={"attribute": attribute, "value": repr(definition), "errors": e.errors()}
        ) from e

    if isinstance(values, str):
        values = [values]

    if not isinstance(values, dict):
        # Positional values name no operator or threshold.
        logger.warning("Inert authorization rule", attribute=attribute, reason="no operator")
        return Rule(attribute_name=attribute)

    threshold = values.get("value")
    number = to_number(threshold)
    rule = Rule(
        attribute_name=attribute,
        operator=values.get("operator"),
        threshold=number if number is not None else threshold,
        exception_attribute=values.get("exception"),
    )

    if not rule.is_active:
        logger.warning(
            "Inert authorization rule",
            attribute=attribute,
            operator=rule.operator,
            threshold=threshold
        )

    return rule

