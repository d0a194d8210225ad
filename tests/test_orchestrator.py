import pytest
from unittest.mock import AsyncMock, MagicMock

from core.monitoring import StepStatus
from core.operations import OperationRunner
from core.orchestrator import CycleScheduler, WorkflowOrchestrator
from core.registry import CONTRACT_REGISTRY, FAUCET_TARGETS, TOKEN_REGISTRY
from faucets.base import AlreadyClaimed, Claimed
from faucets.collector import FaucetCollector, FaucetSummary


def make_runner(mint_results):
    """Runner mock that records the order of mint/stake calls."""
    calls = []
    runner = MagicMock()

    async def mint(output_token, input_token, contract, payload):
        calls.append(("mint", output_token.symbol, contract))
        return mint_results[output_token.symbol]

    async def stake(token, contract):
        calls.append(("stake", token.symbol, contract))
        return True

    runner.mint = AsyncMock(side_effect=mint)
    runner.stake = AsyncMock(side_effect=stake)
    runner.drain_journal = MagicMock(return_value=[])
    return runner, calls


def make_collector(significant):
    collector = MagicMock()
    collector.claim_all = AsyncMock(
        return_value=FaucetSummary(total=6, processed_count=6, significant_claim=significant)
    )
    return collector


class TestWorkflowOrchestrator:
    @pytest.mark.asyncio
    async def test_step_order(self, context):
        runner, calls = make_runner({"AUSD": True, "VUSD": True, "AZUSD": True})
        orchestrator = WorkflowOrchestrator(context, runner)

        await orchestrator.run_cycle()

        assert [(kind, symbol) for kind, symbol, _ in calls] == [
            ("mint", "AUSD"), ("stake", "AUSD"),
            ("mint", "VUSD"), ("stake", "VUSD"),
            ("mint", "AZUSD"), ("stake", "AZUSD"),
            ("stake", "LVLUSD"), ("stake", "USDe"), ("stake", "USD1"),
        ]
        assert calls[0][2] == CONTRACT_REGISTRY["mintAUSD"]
        assert calls[1][2] == CONTRACT_REGISTRY["stakeAUSD"]

    @pytest.mark.asyncio
    async def test_failed_mint_skips_only_its_stake(self, context, mock_sleep):
        runner, calls = make_runner({"AUSD": True, "VUSD": False, "AZUSD": True})
        orchestrator = WorkflowOrchestrator(context, runner)

        await orchestrator.run_cycle()

        staked = [symbol for kind, symbol, _ in calls if kind == "stake"]
        assert staked == ["AUSD", "AZUSD", "LVLUSD", "USDe", "USD1"]
        # 2 + 1 + 2 pauses around the blocks, 2 between trailing stakes
        assert mock_sleep.await_count == 7
        assert all(c.args[0] == 5.0 for c in mock_sleep.await_args_list)

    @pytest.mark.asyncio
    async def test_all_mints_fail_trailing_stakes_still_run(self, context):
        runner, calls = make_runner({"AUSD": False, "VUSD": False, "AZUSD": False})
        orchestrator = WorkflowOrchestrator(context, runner)

        await orchestrator.run_cycle()

        assert [symbol for kind, symbol, _ in calls if kind == "stake"] == ["LVLUSD", "USDe", "USD1"]

    @pytest.mark.asyncio
    async def test_settle_delay_after_significant_claim(self, context, mock_sleep):
        runner, _ = make_runner({"AUSD": False, "VUSD": False, "AZUSD": False})
        orchestrator = WorkflowOrchestrator(context, runner, make_collector(True))

        report = await orchestrator.run_cycle()

        assert mock_sleep.await_args_list[0].args[0] == 10.0
        assert report.faucets.significant_claim

    @pytest.mark.asyncio
    async def test_no_settle_delay_otherwise(self, context, mock_sleep):
        runner, _ = make_runner({"AUSD": False, "VUSD": False, "AZUSD": False})
        collector = make_collector(False)
        orchestrator = WorkflowOrchestrator(context, runner, collector)

        await orchestrator.run_cycle()

        collector.claim_all.assert_awaited_once_with(context.address)
        assert 10.0 not in [c.args[0] for c in mock_sleep.await_args_list]

    @pytest.mark.asyncio
    async def test_custom_delays(self, context, mock_sleep):
        runner, _ = make_runner({"AUSD": True, "VUSD": True, "AZUSD": True})
        orchestrator = WorkflowOrchestrator(
            context, runner, make_collector(True), settle_delay=3.0, step_cooldown=1.0
        )

        await orchestrator.run_cycle()

        delays = [c.args[0] for c in mock_sleep.await_args_list]
        assert delays[0] == 3.0
        assert set(delays[1:]) == {1.0}


class TestCycleIntegration:
    @pytest.mark.asyncio
    async def test_empty_wallet_sends_nothing(self, context, chain_client):
        orchestrator = WorkflowOrchestrator(context, OperationRunner(context))

        report = await orchestrator.run_cycle()

        assert chain_client.submitted == []
        assert len(report.steps) == 6
        assert report.count(StepStatus.SKIPPED) == 6
        assert report.finished_at is not None

    @pytest.mark.asyncio
    async def test_full_cycle(self, context, chain_client, mock_sleep):
        chain_client.set_balance("ATH", 100 * 10 ** 18)
        chain_client.set_balance("USDe", 10 ** 18)

        def mint_ausd(c, tx):
            c.set_balance("ATH", c.balance("ATH") - 50 * 10 ** 18)
            c.set_balance("AUSD", 50 * 10 ** 18)

        chain_client.effects[CONTRACT_REGISTRY["mintAUSD"]] = mint_ausd
        chain_client.effects[CONTRACT_REGISTRY["stakeAUSD"]] = lambda c, tx: c.set_balance("AUSD", 0)

        faucet_client = MagicMock()

        async def claim(target, address):
            if target.token_symbol == "USD1":
                return Claimed("0xfeed")
            return AlreadyClaimed(60)

        faucet_client.claim = AsyncMock(side_effect=claim)
        collector = FaucetCollector(faucet_client, FAUCET_TARGETS)
        orchestrator = WorkflowOrchestrator(context, OperationRunner(context), collector)

        report = await orchestrator.run_cycle()

        statuses = {step.name: step.status for step in report.steps}
        assert statuses == {
            "Mint AUSD": StepStatus.SUCCESS,
            "Stake AUSD": StepStatus.SUCCESS,
            "Mint VUSD": StepStatus.SKIPPED,
            "Mint AZUSD": StepStatus.SKIPPED,
            "Stake LVLUSD": StepStatus.SKIPPED,
            "Stake USDe": StepStatus.SUCCESS,
            "Stake USD1": StepStatus.SKIPPED,
        }
        assert [tx["to"] for tx in chain_client.submitted] == [
            TOKEN_REGISTRY["ATH"].address, CONTRACT_REGISTRY["mintAUSD"],
            TOKEN_REGISTRY["AUSD"].address, CONTRACT_REGISTRY["stakeAUSD"],
            TOKEN_REGISTRY["USDe"].address, CONTRACT_REGISTRY["stakeUSDe"],
        ]
        assert [tx["nonce"] for tx in chain_client.submitted] == list(range(7, 13))
        assert report.faucets.significant_claim
        assert 10.0 in [c.args[0] for c in mock_sleep.await_args_list]


class TestCycleScheduler:
    @pytest.mark.asyncio
    async def test_countdown_ticks_every_second(self, mock_sleep):
        countdown = MagicMock()
        scheduler = CycleScheduler(MagicMock(), interval_seconds=3, countdown=countdown)

        await scheduler.wait_for_next_cycle()

        assert [c.args[0] for c in countdown.update.call_args_list] == [3, 2, 1]
        assert mock_sleep.await_count == 3
        mock_sleep.assert_awaited_with(1)
        countdown.stop.assert_called_once_with(finished=True)

    @pytest.mark.asyncio
    async def test_run_once_renders_report(self):
        report = MagicMock()
        orchestrator = MagicMock()
        orchestrator.run_cycle = AsyncMock(return_value=report)
        countdown = MagicMock()
        scheduler = CycleScheduler(orchestrator, countdown=countdown)

        result = await scheduler.run_once()

        assert result is report
        assert scheduler.cycles_completed == 1
        report.render.assert_called_once_with(countdown.console)

    @pytest.mark.asyncio
    async def test_run_forever_until_stopped(self):
        orchestrator = MagicMock()
        countdown = MagicMock()
        scheduler = CycleScheduler(
            orchestrator, interval_seconds=2, countdown=countdown, render_reports=False
        )

        async def cycle():
            if orchestrator.run_cycle.await_count >= 2:
                scheduler.stop()
            return MagicMock()

        orchestrator.run_cycle = AsyncMock(side_effect=cycle)

        await scheduler.run_forever()

        assert scheduler.cycles_completed == 2
        assert countdown.update.call_count == 2
        countdown.stop.assert_called_once_with(finished=True)

    @pytest.mark.asyncio
    async def test_stop_interrupts_countdown(self, mock_sleep):
        countdown = MagicMock()
        scheduler = CycleScheduler(MagicMock(), interval_seconds=100, countdown=countdown)
        mock_sleep.side_effect = lambda _: scheduler.stop()

        await scheduler.wait_for_next_cycle()

        assert countdown.update.call_count == 1
        countdown.stop.assert_called_once_with(finished=False)
