"""
Migration Worker Example for schemashift.

This example migrates an in-memory SQLite database through six versions of
a small city/country schema.

Features demonstrated:
- SQL migrations with explicit down migrations
- Down migrations derived from the up SQL (versions 3 and 6)
- Migrations written as transaction functions and database functions
- Migrating up, migrating to a version, locking and listing versions

Author: schemashift
Version: 1.0.0
"""

import asyncio
import logging

from schemashift import AdapterRegistry, MigrationWorker, Schema, VersionLockedError

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def create_schema() -> Schema:
    """Define every version of the example schema."""
    schema = Schema()

    schema.define(1).up("""
        CREATE TABLE city (
            id integer NOT NULL,
            name text NOT NULL,
            countrycode character(3) NOT NULL,
            district text NOT NULL,
            population integer NOT NULL
        );
    """).down("DROP TABLE city;")

    schema.define(2).up("""
        CREATE TABLE country (
            code character(3) NOT NULL,
            name text NOT NULL,
            continent text NOT NULL,
            population integer NOT NULL
        );
    """).down("DROP TABLE country;")

    # down migration drops the view
    schema.define(3).up("""
        create view city_country as
            select city.id, city.name, country.name as country_name
            from city
            inner join country on city.countrycode = country.code;
    """)

    async def add_kabul(tx):
        await tx.execute(
            "insert into city(id, name, countrycode, district, population) "
            "values (:id, :name, :code, :district, :population)",
            {'id': 1, 'name': 'Kabul', 'code': 'AFG', 'district': 'Kabol', 'population': 1780000}
        )

    async def remove_kabul(tx):
        await tx.execute("delete from city where id = :id", {'id': 1})

    schema.define(4).up_tx(add_kabul).down_tx(remove_kabul).describe("add Kabul")

    # Runs outside a transaction. If it fails the version is marked failed
    # and must be repaired by hand before calling force.
    async def add_qandahar(db):
        await db.execute(
            "insert into city(id, name, countrycode, district, population) "
            "values (:id, :name, :code, :district, :population)",
            {'id': 2, 'name': 'Qandahar', 'code': 'AFG', 'district': 'Qandahar', 'population': 237500}
        )

    async def remove_qandahar(db):
        await db.execute("delete from city where id = :id", {'id': 2})

    schema.define(5).up_db(add_qandahar).down_db(remove_qandahar).describe("add Qandahar")

    # down migration restores the view defined in version 3
    schema.define(6).up("""
        drop view if exists city_country;

        create view city_country as
            select city.id, city.name, country.name as country_name, district
            from city
            inner join country on city.countrycode = country.code;
    """)

    return schema


def demonstrate_derived_down_migrations(schema: Schema):
    """Show the down migrations worked out from the up SQL."""
    logger.info("=== Derived Down Migrations ===")
    for version_id in (3, 6):
        plan = schema.plan(version_id)
        logger.info(f"Version {version_id} down:\n{plan.down_sql}")


async def demonstrate_locking(worker: MigrationWorker):
    """Lock a version and show that goto refuses to pass it."""
    logger.info("=== Locking ===")
    await worker.lock(4)
    try:
        await worker.goto(2)
    except VersionLockedError as e:
        logger.info(f"Expected error: {e}")
    await worker.unlock(4)


async def demonstrate_versions(worker: MigrationWorker):
    """List every version with its state."""
    logger.info("=== Versions ===")
    for version in await worker.versions():
        state = "applied" if version.applied else "pending"
        logger.info(f"  {version.id}: {state}")


async def main():
    """Main demonstration function."""
    logger.info("Starting Migration Worker Example")

    schema = create_schema()
    demonstrate_derived_down_migrations(schema)

    async with AdapterRegistry.create_adapter_from_url("sqlite:///:memory:") as db:
        worker = MigrationWorker(db, schema, log_func=print)

        # Migrate up to the latest version
        await worker.up()

        # Migrate down to version 4
        await worker.goto(4)

        await demonstrate_locking(worker)
        await demonstrate_versions(worker)

    logger.info("=== Example completed successfully ===")


if __name__ == "__main__":
    asyncio.run(main())
