"""
Thing spec filter service for the MSC integration.
"""

from typing import Optional, Sequence

from fastapi import Query

from shared.base_service import BaseService
from shared.logging import set_device_context

from .config import ThingSpecFilterConfig, load_filter_config, rules_from_config
from .filters.engine import ThingSpecFilterService
from .filters.models import (
    FilterRuleListResponse, FilterRuleResolveResponse, FilterRuleResponse,
    ThingSpecFilterRequest, ThingSpecFilterResponse
)
from .filters.providers import DEFAULT_PROVIDERS, ThingSpecFilterProvider, rule_from_provider
from .filters.registry import build_filter_registry


class ThingSpecService(BaseService):
    """Thing spec filter service implementation."""

    def __init__(
        self,
        providers: Optional[Sequence[ThingSpecFilterProvider]] = None,
        filter_config: Optional[ThingSpecFilterConfig] = None
    ):
        super().__init__("thingspec", 8020)

        if providers is None:
            providers = DEFAULT_PROVIDERS
        if filter_config is None:
            filter_config = load_filter_config(self.config.thing_spec_filter_file)

        # Rules are resolved once here and never change afterwards
        self.registry = build_filter_registry(
            code_rules=[rule_from_provider(p) for p in providers],
            config_rules=rules_from_config(filter_config)
        )
        self.filter_service = ThingSpecFilterService(self.registry, metrics=self.metrics)

        self._setup_thingspec_routes()

    def _setup_thingspec_routes(self):
        """Set up thing spec specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "thingspec",
                "message": "MSC Integration - Thing Spec Filter Service",
                "version": "1.0.0",
                "capabilities": ["thing_spec_filter"]
            }

        @self.app.post(
            "/thing-specs/filter",
            response_model=ThingSpecFilterResponse,
            response_model_by_alias=True
        )
        async def filter_thing_spec(request: ThingSpecFilterRequest):
            """Filter a thing spec for a device model."""
            set_device_context(request.device_model)

            rule = self.filter_service.resolve(request.device_model)
            thing_spec = self.filter_service.filter(request.thing_spec, request.device_model)
            applied = rule is not None and request.thing_spec is not None

            return ThingSpecFilterResponse(
                device_model=request.device_model,
                filtered=applied,
                rule=FilterRuleResponse.from_rule(rule) if applied else None,
                thing_spec=thing_spec
            )

        @self.app.get("/thing-specs/rules", response_model=FilterRuleListResponse)
        async def list_rules():
            """List filter rules in resolution order."""
            rules = [FilterRuleResponse.from_rule(rule) for rule in self.registry.rules]
            return FilterRuleListResponse(rules=rules, total=len(rules))

        @self.app.get("/thing-specs/rules/resolve", response_model=FilterRuleResolveResponse)
        async def resolve_rule(
            device_model: Optional[str] = Query(None, description="Device model to resolve")
        ):
            """Show the filter rule that applies to a device model."""
            rule = self.filter_service.resolve(device_model)
            return FilterRuleResolveResponse(
                device_model=device_model,
                matched=rule is not None,
                rule=FilterRuleResponse.from_rule(rule) if rule is not None else None
            )

        @self.app.get("/thing-specs/stats")
        async def get_stats():
            """Get registry statistics."""
            return self.registry.get_stats()

    async def _check_dependencies(self):
        """The service has no external dependencies."""
        return {"filter_rules": "ok" if len(self.registry) else "empty"}


def create_app(
    providers: Optional[Sequence[ThingSpecFilterProvider]] = None,
    filter_config: Optional[ThingSpecFilterConfig] = None
):
    """Create thing spec service application."""
    service = ThingSpecService(providers=providers, filter_config=filter_config)
    return service.app


if __name__ == "__main__":
    service = ThingSpecService()
    service.run()
