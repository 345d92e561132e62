"""
Payment Executor.

Resolves the price of a due job and makes exactly one delegated
transfer through the chain adapter. Holds no retry logic.
"""

import asyncio

from loguru import logger

from relayer.services.blockchain.base import ChainAdapter
from relayer.utils.exceptions import ChainExecutionError, ConfigurationError
from relayer.utils.security import mask_address, mask_tx_hash

from .types import ChargeResult, DueJob, PlanTokenSnapshot


class PaymentExecutor:
    """Charges one job through the chain adapter."""

    def __init__(self, chain_adapter: ChainAdapter, call_timeout: float) -> None:
        self.chain_adapter = chain_adapter
        self.call_timeout = call_timeout

    def resolve_plan_token(self, job: DueJob) -> PlanTokenSnapshot:
        """
        Find the PlanToken matching the subscription's token.

        Raises:
            ConfigurationError: If the plan cannot be charged in that token
                or has no billing period
        """
        token_mint = job.subscription.token_mint
        plan_token = job.plan.token_for(token_mint)

        if plan_token is None:
            raise ConfigurationError(
                f"Plan {job.plan.id} has no price for token {token_mint}"
            )
        if plan_token.price <= 0:
            raise ConfigurationError(
                f"Plan {job.plan.id} price for token {token_mint} is not positive"
            )
        if not job.plan.period_seconds or job.plan.period_seconds <= 0:
            raise ConfigurationError(
                f"Plan {job.plan.id} has no billing period"
            )

        return plan_token

    async def execute(self, job: DueJob) -> ChargeResult:
        """
        Execute the delegated transfer for a job.

        Args:
            job: Due job snapshot

        Returns:
            ChargeResult with the transaction signature

        Raises:
            ConfigurationError: Nothing was sent to the chain
            ChainExecutionError: The transfer failed, timed out or returned
                no signature
        """
        plan_token = self.resolve_plan_token(job)

        logger.info(
            f"Charging job {job.id}: {plan_token.price} {plan_token.symbol} "
            f"from {mask_address(job.payer.wallet_address)} "
            f"to {mask_address(job.plan.receiver_wallet)} "
            f"(attempt {job.attempt})"
        )

        try:
            tx_signature = await asyncio.wait_for(
                self.chain_adapter.execute_delegated_transfer(
                    payer_wallet=job.payer.wallet_address,
                    receiver_wallet=job.plan.receiver_wallet,
                    token_mint=plan_token.token_mint,
                    token_decimals=job.subscription.token_decimals,
                    amount=plan_token.price,
                ),
                timeout=self.call_timeout,
            )
        except TimeoutError as e:
            raise ChainExecutionError(
                f"Chain call timed out after {self.call_timeout}s"
            ) from e
        except ChainExecutionError:
            raise
        except Exception as e:
            raise ChainExecutionError(f"Chain adapter error: {e}") from e

        # The returned signature is the only proof of success
        if not isinstance(tx_signature, str) or not tx_signature.strip():
            raise ChainExecutionError(
                "Chain adapter returned no transaction signature"
            )

        logger.info(f"Job {job.id} charged, tx {mask_tx_hash(tx_signature)}")

        return ChargeResult(
            tx_signature=tx_signature,
            amount=plan_token.price,
            token_mint=plan_token.token_mint,
        )
