"""
Authorization evaluator for the authorize filter.
"""

from typing import Any, Optional, Sequence, Set

from shared.logging import get_logger
from shared.errors import ValidationError
from .coercion import to_number, is_truthy
from .models import (
    Rule, ComparisonOperator, EvaluatorConfig, Verdict, AttributeBag
)


class AuthorizationEvaluator:
    """Evaluates an ordered rule set against a principal's attributes.

    Stateless: the same config and attributes always give an equal
    verdict, so a single instance may serve any number of requests.
    """

    def __init__(self):
        self.logger = get_logger("authorize.evaluator")

    def evaluate(self, config: EvaluatorConfig, attributes: AttributeBag) -> Verdict:
        """Evaluate rules against the attribute bag."""
        if attributes is None:
            raise ValidationError("Attributes are required for authorization")

        default_deny = config.default_deny
        authorized = not default_deny
        matched: Set[str] = set()
        denied: Set[str] = set()
        halted_at: Optional[str] = None

        for rule in config.rules:
            name = rule.attribute_name
            if name not in attributes:
                continue

            # Inert rules never change the verdict and never halt.
            if not rule.is_active:
                continue

            if self._compare(rule, first_value(attributes[name])):
                authorized = default_deny
                matched.add(name)

            if not authorized:
                if self._exception_applies(rule, attributes):
                    # Back to the starting verdict; later rules still apply.
                    authorized = not default_deny
                    matched.add(name)
                else:
                    denied.add(name)
                    halted_at = name
                    break

        verdict = Verdict(
            authorized=authorized,
            matched_attribute_names=matched,
            denied_attribute_names=denied,
            context=build_context(config, matched, denied),
        )

        self.logger.debug(
            "Authorization verdict",
            authorized=verdict.authorized,
            default_deny=default_deny,
            matched=sorted(matched),
            denied=sorted(denied),
            halted_at=halted_at
        )

        return verdict

    def _compare(self, rule: Rule, value: Any) -> bool:
        """Apply the rule's operator to one attribute value."""
        operator = rule.comparison
        threshold = to_number(rule.threshold)
        number = to_number(value)

        if number is None:
            # Non-numeric values can only be unequal to a numeric threshold.
            return operator == ComparisonOperator.NOT_EQUALS and value is not None

        if operator == ComparisonOperator.LESS_THAN:
            return number < threshold

        elif operator == ComparisonOperator.LESS_THAN_OR_EQUAL:
            return number <= threshold

        elif operator == ComparisonOperator.GREATER_THAN:
            return number > threshold

        elif operator == ComparisonOperator.GREATER_THAN_OR_EQUAL:
            return number >= threshold

        elif operator == ComparisonOperator.EQUALS:
            return number == threshold

        elif operator == ComparisonOperator.NOT_EQUALS:
            return number != threshold

        return False

    def _exception_applies(self, rule: Rule, attributes: AttributeBag) -> bool:
        """Whether the rule's exception attribute overrides its failure."""
        if not rule.exception_attribute:
            return False
        if rule.exception_attribute not in attributes:
            return False
        return is_truthy(first_value(attributes[rule.exception_attribute]))


def first_value(values: Any) -> Any:
    """First value of a multi-valued attribute; a scalar is its own first value."""
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        return values
    return values[0] if values else None


def build_context(config: EvaluatorConfig, matched: Set[str], denied: Set[str]) -> str:
    """Space-joined attribute names hinting at why a principal was denied.

    Deny-by-default reports the rules that denied; allow-by-default reports
    every configured rule that did not match.
    """
    names = config.rule_names
    if config.default_deny:
        return " ".join(name for name in names if name in denied)
    return " ".join(name for name in names if name not in matched)


def evaluate(config: EvaluatorConfig, attributes: AttributeBag) -> Verdict:
    """Evaluate rules against attributes with a fresh evaluator."""
    return AuthorizationEvaluator().evaluate(config, attributes)
