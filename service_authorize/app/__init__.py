"""
Authorize filter package for the Access Layer.

This package decides whether a principal may continue through an
authentication pipeline, based on the identity attributes asserted for
them. It provides:

- app.rules: Rule model, builder, and the authorization evaluator.
- app.filter: Pipeline step that records decision context in state.
- app.handoff: State persistence and redirect for denied principals.

Guidelines:
- The evaluator is stateless; pipeline state lives with the caller.
- Configuration errors are fatal at build time; malformed rules found at
  evaluation time are inert.
- Keep evaluation deterministic and observable (logs).
"""
