"""
Rules package.

Defines the rule model and the evaluator used by the authorize filter.
A rule compares the first value of one identity attribute against a
numeric threshold; an optional exception attribute can override a
failing rule.

Modules of interest:
- models: Data classes for Rule, EvaluatorConfig, Verdict and FilterConfig.
- coercion: Numeric test and the canonical string-to-boolean parser.
- builder: Raw filter configuration to typed rules, validated once.
- engine: Evaluation algorithm with short-circuit and exception override.

The evaluator is stateless and pure; persistence and redirects belong to
the filter and handoff modules.
"""
