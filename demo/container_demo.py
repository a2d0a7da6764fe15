import asyncio
import logging
from typing import Annotated

from plugbox import OUTCOME, Container, Id, Lifecycle, PluginConfigBuilder, Ref


class DBConnection:
    def __init__(self, connection_string: str):
        self.connection_string = connection_string
        self.connected = False
        self.rows: dict[str, int] = {}

    async def connect(self) -> None:
        await asyncio.sleep(0.01)
        print(f"[DB] Connecting to {self.connection_string}")
        self.connected = True

    async def disconnect(self) -> None:
        print(f"[DB] Disconnecting from {self.connection_string}")
        self.connected = False

    def deposit(self, account: str, amount: int) -> int:
        assert self.connected, "Not connected to database"
        self.rows[account] = self.rows.get(account, 0) + amount
        return self.rows[account]


async def open_db(dsn: str) -> DBConnection:
    conn = DBConnection(dsn)
    await conn.connect()
    return conn


async def close_db(conn: DBConnection) -> None:
    await conn.disconnect()


class Bank:
    """A program: the container drives its hooks."""

    def configure(self, config: PluginConfigBuilder) -> None:
        config.add_plugin("database", Ref("db"))

    def setup(self, db: DBConnection) -> None:
        print(f"[APP] Setup with {db.connection_string}")

    def preconditions(self, amount: int) -> None:
        if amount <= 0:
            raise ValueError(f"Deposit must be positive, got {amount}")

    def main(self, database: DBConnection, account: str, amount: int) -> int:
        return database.deposit(account, amount)

    def postconditions(self, balance: Annotated[int, Id(OUTCOME)], amount: int) -> None:
        assert balance >= amount, "Balance lost money"

    def teardown(self) -> None:
        print("[APP] Teardown")


async def run() -> None:
    container = Container(Bank())
    container.add_plugin("dsn", "postgresql://localhost:5432/bank")
    container.add_plugin("db", Lifecycle.make(open_db, close_db))

    print("1. Booting container...")
    print("-" * 50)
    await container.init(timeout_ms=1000)

    print("\n2. Running concurrent executions...")
    print("-" * 50)
    balances = await asyncio.gather(
        container.execute(account="alice", amount=10),
        container.execute(account="bob", amount=5),
        container.execute(account="alice", amount=7),
    )
    print(f"Balances after each deposit: {balances}")

    print("\n3. Rejected by preconditions...")
    print("-" * 50)
    try:
        await container.execute(account="alice", amount=-3)
    except Exception as e:
        print(f"Rejected: {e}")

    print("\n4. Destroying container (plugins are released)...")
    print("-" * 50)
    await container.destroy()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    print("=== Container Demo ===\n")
    asyncio.run(run())
    print("\nDemo completed successfully!")
