"""
Data layer construct: DynamoDB tables for the billing cache and customer groups.
"""

from typing import Dict

from aws_cdk import (
    RemovalPolicy,
    aws_dynamodb as dynamodb,
)
from constructs import Construct

# Index used by the per-customer snapshot queries.
CUSTOMER_ID_INDEX = "customerId-index"


class DataLayerConstruct(Construct):
    """Provision the cache and group tables."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
    ) -> None:
        super().__init__(scope, construct_id)

        self._environment = environment

        # Stripe mirror written by the sync job; keyed by Stripe id.
        self.customers_table = self._table("Customers")
        self.subscriptions_table = self._table("Subscriptions", customer_index=True)
        self.invoices_table = self._table("Invoices", customer_index=True)
        self.charges_table = self._table("Charges", customer_index=True)

        # Group definitions owned by this service.
        self.groups_table = self._table("CustomerGroups")

    @property
    def tables(self) -> Dict[str, dynamodb.Table]:
        """Tables keyed by the Lambda environment variable that names them."""
        return {
            "CUSTOMERS_TABLE": self.customers_table,
            "SUBSCRIPTIONS_TABLE": self.subscriptions_table,
            "INVOICES_TABLE": self.invoices_table,
            "CHARGES_TABLE": self.charges_table,
            "GROUPS_TABLE": self.groups_table,
        }

    def _table(self, construct_id: str, customer_index: bool = False) -> dynamodb.Table:
        prod = self._environment == "prod"
        table = dynamodb.Table(
            self,
            construct_id,
            partition_key=dynamodb.Attribute(name="id", type=dynamodb.AttributeType.STRING),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            point_in_time_recovery=prod,
            removal_policy=RemovalPolicy.RETAIN if prod else RemovalPolicy.DESTROY,
        )
        if customer_index:
            table.add_global_secondary_index(
                index_name=CUSTOMER_ID_INDEX,
                partition_key=dynamodb.Attribute(
                    name="customerId", type=dynamodb.AttributeType.STRING
                ),
                projection_type=dynamodb.ProjectionType.ALL,
            )
        return table
