#!/usr/bin/env python3
"""Create the starter "All Customers" group in the deployed groups table."""

import os
import sys
from pathlib import Path

import boto3

SRC_PATH = Path(__file__).parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


def main():
    environment = os.environ.get("ENVIRONMENT", "dev")
    stack_name = f"CustomerGroupsStack-{environment}"

    # Get the groups table name from CloudFormation
    cf = boto3.client("cloudformation")
    try:
        resp = cf.describe_stacks(StackName=stack_name)
        outputs = {o["OutputKey"]: o["OutputValue"] for o in resp["Stacks"][0]["Outputs"]}
        os.environ["GROUPS_TABLE"] = outputs["GroupsTable"]
    except Exception as e:
        print(f"Error reading outputs of {stack_name}: {e}")
        sys.exit(1)

    from services.group_service import CustomerGroupService

    group = CustomerGroupService().ensure_default_group()
    print(f"Starter group ready: {group.id} ({group.name}) in {os.environ['GROUPS_TABLE']}")


if __name__ == "__main__":
    main()
