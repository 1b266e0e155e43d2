"""Tagged transaction counts."""

from typing import TYPE_CHECKING
from uuid import UUID

from household_ledger.analysis.attributes import TagAttr
from household_ledger.analysis.buckets import Bucket, BucketList
from household_ledger.analysis.history import BucketHistory
from household_ledger.analysis.values import BucketValues
from household_ledger.domain.categories import TransactionTag

if TYPE_CHECKING:
    from household_ledger.analysis.analysis import Analysis
    from household_ledger.services.transaction_helper import TransactionHelper


class TransactionTagBucket(Bucket[TagAttr]):
    def __init__(
        self,
        analysis: "Analysis",
        tag: TransactionTag,
        history: BucketHistory[TagAttr] | None = None,
    ) -> None:
        self._tag = tag
        if history is None:
            history = BucketHistory(BucketValues((TagAttr.TRANSACTIONS,), {TagAttr.TRANSACTIONS: 0}))
        super().__init__(analysis, history)

    @property
    def tag(self) -> TransactionTag:
        return self._tag

    @property
    def key(self) -> UUID:
        return self._tag.id

    @property
    def name(self) -> str:
        return self._tag.name

    def derive(self, analysis: "Analysis", history: BucketHistory[TagAttr]) -> "TransactionTagBucket":
        return TransactionTagBucket(analysis, self._tag, history)

    def process_transaction(self, helper: "TransactionHelper") -> None:
        self.values.adjust(TagAttr.TRANSACTIONS, 1)
        self.register_transaction(helper)

    @property
    def transaction_count(self) -> int:
        return len(self.history)


class TransactionTagBucketList(BucketList[TransactionTagBucket]):
    def get_bucket(self, tag: TransactionTag) -> TransactionTagBucket:
        bucket = self._buckets.get(tag.id)
        if bucket is None:
            bucket = TransactionTagBucket(self._analysis, tag)
            self._buckets[tag.id] = bucket
        return bucket

    def process_transaction(self, helper: "TransactionHelper") -> None:
        for tag in helper.transaction.tags:
            self.get_bucket(tag).process_transaction(helper)

    def produce_totals(self) -> None:
        for bucket in self:
            bucket.values.adjust_to_base_values(bucket.base_values)
            bucket.base_values.reset_base_values()
        self._sort(lambda bucket: bucket.name)
