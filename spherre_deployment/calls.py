from typing import Any, List, NamedTuple, Optional

from spherre_deployment.context import RunContext
from spherre_deployment.exceptions import BatchExecutionFailed, ChainClientError


class PendingCall(NamedTuple):
    """A chain-mutating call waiting to be submitted."""

    target_address: str
    entrypoint: str
    calldata: List[Any]
    # precomputed address of the contract created by a deploy-type call
    deploys: Optional[str] = None


class CallReceipt(NamedTuple):
    call: PendingCall
    transaction_hash: str

    @property
    def contract_address(self) -> Optional[str]:
        return self.call.deploys


class BatchResult(NamedTuple):
    transaction_hash: Optional[str]
    receipts: List[CallReceipt]


class CallAccumulator:
    """
    Buffers chain-mutating calls so they can be submitted to the chain together,
    as a single ordered multicall, instead of one transaction per call.
    """

    def __init__(self, context: RunContext, client):
        self.context = context
        self.client = client
        self._calls: List[PendingCall] = list()

    @property
    def pending(self) -> List[PendingCall]:
        return list(self._calls)

    def enqueue(self, call: PendingCall) -> None:
        self._calls.append(call)

    async def flush(self) -> BatchResult:
        """
        Submits all buffered calls in the order they were enqueued.
        On failure the buffer is left as it was so the whole batch can be retried.
        """
        if not self._calls:
            return BatchResult(transaction_hash=None, receipts=[])

        calls = list(self._calls)
        try:
            transaction_hash = await self.client.execute_batch(calls)
        except ChainClientError as e:
            raise BatchExecutionFailed(cause=e) from e

        # only calls submitted by this flush are removed
        del self._calls[: len(calls)]
        receipts = [CallReceipt(call=call, transaction_hash=transaction_hash) for call in calls]
        return BatchResult(transaction_hash=transaction_hash, receipts=receipts)

    def __len__(self) -> int:
        return len(self._calls)


async def flush_with_retries(accumulator: CallAccumulator, retries: int = 0) -> BatchResult:
    """Flushes the accumulator, resubmitting the identical batch up to `retries` times."""
    attempts = retries + 1
    for attempt in range(1, attempts + 1):
        try:
            return await accumulator.flush()
        except BatchExecutionFailed as e:
            if attempt == attempts:
                raise
            print(f"(i) {e}; retrying batch ({attempt}/{retries})...")
