"""
Thing Spec Service package for the MSC integration.

This package reduces the thing spec of a device (its properties, events
and services) to the subset relevant for the device model. It provides:

- app.main: API surface for filtering thing specs, listing rules and health.
- app.filters: Rule model, registry, pattern matching and filter engine.
- app.config: Configuration-declared filter rules (environment or YAML).

Guidelines:
- Rules are resolved once at startup and are read-only afterwards.
- Filtering never fails; when nothing applies the thing spec passes through.
- Keep rule resolution deterministic and observable (metrics + logs).
"""
