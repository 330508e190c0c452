"""
API layer construct: shared Lambda + HTTP API routes.

A single Lambda keeps the billing snapshot cache warm across routes.
Uses Docker bundling for dependencies (runs in CI/CD pipeline).
"""

from typing import Dict, Sequence

from aws_cdk import (
    BundlingOptions,
    Duration,
    aws_dynamodb as dynamodb,
    aws_lambda as _lambda,
    aws_apigatewayv2 as apigw,
    aws_apigatewayv2_integrations as integrations,
    aws_logs as logs,
)
from constructs import Construct

from infrastructure.constructs.data_layer import CUSTOMER_ID_INDEX


class ApiLayerConstruct(Construct):
    """Expose the admin group endpoints via HTTP API."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        tables: Dict[str, dynamodb.Table],
        allowed_origins: Sequence[str] = ("*",),
        snapshot_cache_ttl_seconds: int = 60,
        log_level: str = "INFO",
        lambda_memory_mb: int = 512,
        lambda_timeout_seconds: int = 30,
    ) -> None:
        super().__init__(scope, construct_id)

        # Bundle Lambda code with dependencies using Docker (works in CI/CD).
        # x86_64 so wheels built in the bundling image match the runtime.
        bundled_code = _lambda.Code.from_asset(
            "src",
            bundling=BundlingOptions(
                image=_lambda.Runtime.PYTHON_3_12.bundling_image,
                command=[
                    "bash", "-c",
                    "pip install pydantic python-json-logger -t /asset-output && "
                    "cp -r . /asset-output"
                ],
            ),
        )

        self.main_lambda = _lambda.Function(
            self,
            "ApiHandler",
            runtime=_lambda.Runtime.PYTHON_3_12,
            handler="handlers.main.lambda_handler",
            code=bundled_code,
            memory_size=lambda_memory_mb,
            timeout=Duration.seconds(lambda_timeout_seconds),
            architecture=_lambda.Architecture.X86_64,
            environment={
                "ENVIRONMENT": environment,
                "LOG_LEVEL": log_level,
                "CUSTOMER_ID_INDEX": CUSTOMER_ID_INDEX,
                "SNAPSHOT_CACHE_TTL_SECONDS": str(snapshot_cache_ttl_seconds),
                **{env_name: table.table_name for env_name, table in tables.items()},
            },
            log_retention=logs.RetentionDays.ONE_WEEK,
        )

        # Evaluation only reads the cache; group edits need write access.
        for env_name, table in tables.items():
            if env_name == "GROUPS_TABLE":
                table.grant_read_write_data(self.main_lambda)
            else:
                table.grant_read_data(self.main_lambda)

        # HTTP API with minimal latency and low cost.
        self.api = apigw.HttpApi(
            self,
            "HttpApi",
            api_name=f"customer-groups-api-{environment}",
            cors_preflight=apigw.CorsPreflightOptions(
                allow_origins=list(allowed_origins),
                allow_methods=[apigw.CorsHttpMethod.ANY],
                allow_headers=["Authorization", "Content-Type"],
            ),
        )

        integration = integrations.HttpLambdaIntegration(
            "LambdaIntegration", self.main_lambda
        )

        route_defs = [
            (apigw.HttpMethod.GET, "/health"),
            (apigw.HttpMethod.GET, "/admin/groups"),
            (apigw.HttpMethod.POST, "/admin/groups"),
            (apigw.HttpMethod.POST, "/admin/groups/preview"),
            (apigw.HttpMethod.GET, "/admin/groups/{id}"),
            (apigw.HttpMethod.PUT, "/admin/groups/{id}"),
            (apigw.HttpMethod.DELETE, "/admin/groups/{id}"),
            (apigw.HttpMethod.GET, "/admin/groups/{id}/customers"),
            (apigw.HttpMethod.POST, "/admin/groups/{id}/customers"),
            (apigw.HttpMethod.DELETE, "/admin/groups/{id}/customers"),
        ]

        for method, path in route_defs:
            self.api.add_routes(
                path=path,
                methods=[method],
                integration=integration,
            )
