"""
Rule data models for the authorize filter.
"""

from typing import Dict, Any, Optional, List, Mapping, Sequence, Set, Tuple, Union
from dataclasses import dataclass, field
from enum import Enum

from pydantic import StrictStr

from shared.errors import ConfigurationError
from .coercion import is_numeric


class ComparisonOperator(str, Enum):
    """Comparison operators understood by a rule."""
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="
    EQUALS = "=="
    NOT_EQUALS = "!="

    @classmethod
    def parse(cls, symbol: Any) -> Optional["ComparisonOperator"]:
        """Return the operator for a symbol, or None when unrecognized."""
        if not isinstance(symbol, str):
            return None
        try:
            return cls(symbol)
        except ValueError:
            return None


# Raw shape of a rule definition in the filter configuration.
RuleDefinition = Union[StrictStr, List[StrictStr], Dict[StrictStr, StrictStr]]

# SAML attributes are multi-valued; a bare string counts as one value.
AttributeBag = Mapping[str, Union[str, Sequence[str]]]


@dataclass(frozen=True)
class Rule:
    """A single comparison test tied to one attribute name.

    ``operator`` and ``threshold`` are kept as configured. A rule whose
    operator is not one of the six symbols or whose threshold is not
    numeric is inert: the evaluator never lets it change a verdict.
    """
    attribute_name: str
    operator: Optional[str] = None
    threshold: Any = None
    exception_attribute: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.attribute_name, str) or not self.attribute_name:
            raise ConfigurationError(
                "Rule attribute name must be a non-empty string",
                details={"attribute_name": repr(self.attribute_name)}
            )

    @property
    def comparison(self) -> Optional[ComparisonOperator]:
        return ComparisonOperator.parse(self.operator)

    @property
    def is_active(self) -> bool:
        """Whether the rule can take part in evaluation."""
        return self.comparison is not None and is_numeric(self.threshold)


@dataclass(frozen=True)
class EvaluatorConfig:
    """Evaluator input: verdict polarity plus the ordered rule set.

    ``default_deny`` True means the principal starts unauthorized and a
    passing rule allows; False means the principal starts authorized and a
    matching rule denies.
    """
    default_deny: bool
    rules: Tuple[Rule, ...] = ()

    def __post_init__(self):
        # Iteration order is part of the contract; freeze it.
        object.__setattr__(self, "rules", tuple(self.rules))

    @property
    def rule_names(self) -> List[str]:
        """Configured rule names in evaluation order, without repeats."""
        return list(dict.fromkeys(rule.attribute_name for rule in self.rules))


@dataclass
class Verdict:
    """Result of one evaluation."""
    authorized: bool
    matched_attribute_names: Set[str] = field(default_factory=set)
    denied_attribute_names: Set[str] = field(default_factory=set)
    context: str = ""


@dataclass(frozen=True)
class FilterConfig:
    """Complete authorize filter configuration."""
    evaluator: EvaluatorConfig
    reject_msg: Dict[str, str] = field(default_factory=dict)
    app_name: Optional[str] = None
    login_url: Optional[str] = None
    error_url: bool = True
    allow_reauthentication: bool = False
    show_user_attribute: Optional[str] = None
