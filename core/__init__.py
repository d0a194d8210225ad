"""
Core module for the Maitrix auto-task bot.

This package contains the workflow engine that claims testnet tokens,
mints stable tokens from them and stakes the results once per day for a
single account.

Submodules:
    config: Application settings (``BotSettings``) via Pydantic.
    registry: Static token, contract, faucet and workflow tables.
    chain: ``ChainClient`` interface, ``ChainContext`` and the web3 client.
    executor: ``TransactionExecutor`` with gas bounding and retry policy.
    ledger: ``TokenLedgerGate`` balance checks and ``ApprovalManager``.
    operations: ``OperationRunner`` mint and stake operations.
    orchestrator: ``WorkflowOrchestrator`` and ``CycleScheduler``.
    monitoring: ``CycleReport`` tables and the countdown display (Rich).
    logging_setup: Compressed rotating file + Rich console logging.
    utils: Token-unit and duration formatting helpers.
"""
