import asyncio

from strata import IsolationLevel, connect


async def create_schema(session):
    await session.execute(
        "CREATE TABLE IF NOT EXISTS cities (id INTEGER PRIMARY KEY, name TEXT)"
    )


async def add_city(session, name):
    await session.execute("INSERT INTO cities (name) VALUES (?)", (name,))


async def run():
    session = connect(db_path="world.db")
    await create_schema(session)

    transaction = await session.begin_transaction(IsolationLevel.SERIALIZABLE)
    await add_city(session, "Kabul")

    await transaction.begin()
    await add_city(session, "Qandahar")
    await transaction.rollback()

    await transaction.commit()

    cursor = await session.execute("SELECT name FROM cities")
    print([row["name"] for row in await cursor.fetchall()])
    await session.close()


asyncio.run(run())
