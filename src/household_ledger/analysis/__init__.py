from household_ledger.analysis.accounts import AccountBucket, AccountBucketList, AccountKind
from household_ledger.analysis.analysis import Analysis
from household_ledger.analysis.attributes import (
    AccountAttr,
    AttributeKind,
    CategoryAttr,
    PayeeAttr,
    SecurityAttr,
    TagAttr,
    TaxBasisAttr,
)
from household_ledger.analysis.categories import (
    TransactionCategoryBucket,
    TransactionCategoryBucketList,
)
from household_ledger.analysis.dilutions import DilutedPriceMap, DilutionEventMap
from household_ledger.analysis.gains import ChargeableGainSlice, ChargeableGainSliceList
from household_ledger.analysis.history import BucketHistory
from household_ledger.analysis.payees import PayeeBucket, PayeeBucketList
from household_ledger.analysis.portfolios import PortfolioBucket, PortfolioBucketList
from household_ledger.analysis.securities import SecurityBucket, SecurityBucketList
from household_ledger.analysis.tags import TransactionTagBucket, TransactionTagBucketList
from household_ledger.analysis.tax_basis import TaxBasisBucket, TaxBasisBucketList
from household_ledger.analysis.values import BucketValues

__all__ = [
    "AccountAttr",
    "AccountBucket",
    "AccountBucketList",
    "AccountKind",
    "Analysis",
    "AttributeKind",
    "BucketHistory",
    "BucketValues",
    "CategoryAttr",
    "ChargeableGainSlice",
    "ChargeableGainSliceList",
    "DilutedPriceMap",
    "DilutionEventMap",
    "PayeeAttr",
    "PayeeBucket",
    "PayeeBucketList",
    "PortfolioBucket",
    "PortfolioBucketList",
    "SecurityAttr",
    "SecurityBucket",
    "SecurityBucketList",
    "TagAttr",
    "TaxBasisAttr",
    "TaxBasisBucket",
    "TaxBasisBucketList",
    "TransactionCategoryBucket",
    "TransactionCategoryBucketList",
    "TransactionTagBucket",
    "TransactionTagBucketList",
]
