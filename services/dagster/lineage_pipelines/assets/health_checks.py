"""Health check assets for validating the deployment lineage table."""

from dagster import asset, AssetExecutionContext

from ..resources import LineageStoreResource


@asset(group_name="maintenance", compute_kind="mongodb", required_resource_keys={"lineage_store"})
def lineage_self_test(context: AssetExecutionContext) -> dict:
    """
    Verify that the lineage table is reachable and writable.

    Writes a synthetic build and release for the self-test service, then
    deletes every self-test record and checks that the written build was
    among them.

    Returns:
        Dictionary with the partition checked and the self-test status.

    Raises:
        RuntimeError: If the written data could not be found and removed.
    """
    lineage_store: LineageStoreResource = context.resources.lineage_store

    context.log.info(
        f"Running lineage self-test in partition {lineage_store.partition_key}"
    )
    if not lineage_store.run_self_test():
        raise RuntimeError(
            "Lineage self-test failed: self-test data could not be verified and deleted"
        )

    context.log.info("Lineage Self-Test Passed")
    return {"partition_key": lineage_store.partition_key, "status": "succeeded"}
