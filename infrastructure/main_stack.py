"""
Main CDK Stack for the customer groups back office API.
"""

from aws_cdk import (
    Stack,
    Tags,
    CfnOutput,
)
from constructs import Construct

from infrastructure.constructs.data_layer import DataLayerConstruct
from infrastructure.constructs.api_layer import ApiLayerConstruct
from infrastructure.config.settings import Settings


class CustomerGroupsStack(Stack):
    """Main stack wiring all constructs together."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        settings: Settings,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Global tags for cost/accounting.
        Tags.of(self).add("Project", "customer-groups")
        Tags.of(self).add("Environment", settings.environment)
        Tags.of(self).add("CostCenter", "subscriptions-back-office")
        Tags.of(self).add("ManagedBy", "cdk")

        # 1) Data layer: billing cache + groups tables.
        data_construct = DataLayerConstruct(
            self,
            "DataLayer",
            environment=settings.environment,
        )

        # 2) API layer (single Lambda).
        api_construct = ApiLayerConstruct(
            self,
            "ApiLayer",
            environment=settings.environment,
            tables=data_construct.tables,
            allowed_origins=settings.admin_origins,
            snapshot_cache_ttl_seconds=settings.snapshot_cache_ttl_seconds,
            log_level=settings.log_level,
            lambda_memory_mb=settings.lambda_memory_mb,
            lambda_timeout_seconds=settings.lambda_timeout_seconds,
        )

        # Outputs to quickly find resources.
        CfnOutput(self, "ApiEndpoint", value=api_construct.api.api_endpoint)
        CfnOutput(self, "GroupsTable", value=data_construct.groups_table.table_name)
        CfnOutput(self, "CustomersTable", value=data_construct.customers_table.table_name)
