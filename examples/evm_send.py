#!/usr/bin/env python3
"""
EVM Send Example

Sends 1 ETH between two unlocked accounts of a local development node
(anvil or hardhat) and waits for the receipt. The node signs, so no keys
are handled here.

Usage:
    anvil &
    python examples/evm_send.py

Environment Variables:
    RPC_URL: JSON-RPC endpoint (default: http://127.0.0.1:8545)
    FROM_ADDRESS: Unlocked sender (default: anvil account 0)
    TO_ADDRESS: Recipient (default: anvil account 1)
"""

import asyncio
import os

from dotenv import load_dotenv

from multichain_tx import (
    ChainType,
    EVMTransactionParams,
    JsonRpcProvider,
    JsonRpcProviderConfig,
    SupportedChain,
    TransactionError,
    TransactionService,
    configure_logging,
)

load_dotenv()

RPC_URL = os.getenv("RPC_URL", "http://127.0.0.1:8545")
FROM_ADDRESS = os.getenv("FROM_ADDRESS", "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266")
TO_ADDRESS = os.getenv("TO_ADDRESS", "0x70997970C51812dc3A010C7d01b50e0d17dc79C8")


async def main() -> None:
    configure_logging("INFO")

    print("=" * 60)
    print("Multichain TX - EVM send")
    print("=" * 60)

    service = TransactionService({"confirmationTimeout": 30000, "pollingInterval": 500})
    service.subscribe(
        lambda record, previous: print(f"  {previous.value:>10} -> {record.status.value}")
    )

    async with JsonRpcProvider(JsonRpcProviderConfig(url=RPC_URL)) as provider:
        params = EVMTransactionParams(
            to=TO_ADDRESS,
            value="1000000000000000000",
            from_address=FROM_ADDRESS,
        )

        estimate = await service.estimate_gas(params, provider)
        print(f"Gas limit: {estimate.gas_limit}, max fee: {estimate.max_fee_per_gas} wei")

        try:
            result = await service.send_transaction(
                params,
                provider,
                ChainType.EVM,
                SupportedChain("eip155:31337", ChainType.EVM, name="Anvil"),
                address=FROM_ADDRESS,
            )
            print(f"Hash: {result.chain_hash}")
            receipt = await result.wait()
            print(f"Confirmed in block {receipt.block_number}, gas used {receipt.gas_used}")
        except TransactionError as e:
            print(f"Failed at {e.stage.value}: {e}")
        finally:
            service.cleanup()


if __name__ == "__main__":
    asyncio.run(main())
