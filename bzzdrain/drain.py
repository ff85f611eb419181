"""Sweep an account's BZZ and xDAI to another address.

A drain runs these steps in order, stopping at the first error:

1. read the xDAI and BZZ balances of the account
2. rescue: when xDAI is below the ignore threshold but BZZ is held and a
   rescue key is given, send the rescue value of xDAI from the rescue
   account, then re-read xDAI
3. sweep the whole BZZ balance
4. sweep xDAI minus the safe-sub reserve when above the ignore threshold

Each condition is a plain predicate on the DrainReport so it can be
checked without a node.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .chain import ChainClient, TransactionResult, checksum
from .config import DrainPolicy, validate_policy
from .keys import derive_address
from .units import from_base_units

logger = logging.getLogger(__name__)


@dataclass
class DrainReport:
    address: str
    to: str
    native_balance: int = 0
    token_balance: int = 0
    rescue: TransactionResult | None = None
    token_sweep: TransactionResult | None = None
    native_sweep: TransactionResult | None = None

    @property
    def rescued(self) -> bool:
        return self.rescue is not None

    @property
    def transactions(self) -> list[TransactionResult]:
        return [t for t in (self.rescue, self.token_sweep, self.native_sweep) if t is not None]


@dataclass
class _DrainRun:
    private_key: str = field(repr=False)
    rescue_private_key: str | None = field(repr=False)
    report: DrainReport


class DrainOrchestrator:
    def __init__(self, client: ChainClient, policy: DrainPolicy | None = None):
        self.client = client
        self.policy = validate_policy(policy or DrainPolicy())

    @property
    def steps(self):
        return (self.read_balances, self.rescue, self.sweep_token, self.sweep_native)

    async def drain(self, private_key, to: str, rescue_private_key=None) -> DrainReport:
        report = DrainReport(address=derive_address(private_key), to=checksum(to))
        run = _DrainRun(private_key=private_key, rescue_private_key=rescue_private_key, report=report)
        logger.info("Draining %s to %s", report.address, report.to)
        for step in self.steps:
            await step(run)
        return report

    def should_rescue(self, report: DrainReport, has_rescue_key: bool) -> bool:
        return (
            report.native_balance < self.policy.ignore_threshold_wei
            and report.token_balance > 0
            and has_rescue_key
        )

    def should_sweep_token(self, report: DrainReport) -> bool:
        return report.token_balance > 0

    def should_sweep_native(self, report: DrainReport) -> bool:
        return report.native_balance > self.policy.ignore_threshold_wei

    def native_sweep_amount(self, report: DrainReport) -> int:
        return report.native_balance - self.policy.safe_sub_value_wei

    async def read_balances(self, run: _DrainRun) -> None:
        report = run.report
        report.native_balance = await self.client.get_native_balance(report.address)
        report.token_balance = await self.client.get_token_balance(report.address)
        logger.info(
            "%s holds %s xDAI and %s BZZ",
            report.address,
            from_base_units(report.native_balance, self.client.network.native_decimals),
            from_base_units(report.token_balance, self.client.network.token_decimals),
        )

    async def rescue(self, run: _DrainRun) -> None:
        report = run.report
        if not self.should_rescue(report, bool(run.rescue_private_key)):
            return
        logger.info("Rescuing %s with %s xDAI for gas", report.address, self.policy.rescue_value)
        report.rescue = await self.client.send_native(
            run.rescue_private_key, report.address, self.policy.rescue_value_wei
        )
        report.native_balance = await self.client.get_native_balance(report.address)

    async def sweep_token(self, run: _DrainRun) -> None:
        report = run.report
        if not self.should_sweep_token(report):
            logger.info("No BZZ on %s. Skipping transfer.", report.address)
            return
        report.token_sweep = await self.client.send_token(
            run.private_key, report.to, report.token_balance
        )

    async def sweep_native(self, run: _DrainRun) -> None:
        report = run.report
        if not self.should_sweep_native(report):
            logger.info("xDAI on %s is below the ignore threshold. Skipping transfer.", report.address)
            return
        report.native_sweep = await self.client.send_native(
            run.private_key, report.to, self.native_sweep_amount(report)
        )
