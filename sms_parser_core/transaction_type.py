from enum import Enum


class TransactionType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"
    UNKNOWN = "unknown"


class Channel(str, Enum):
    POS = "POS"
    ATM = "ATM"
    UPI = "UPI"
    IMPS = "IMPS"
    NEFT = "NEFT"
    RTGS = "RTGS"
    NET_BANKING = "NetBanking"
    ECOM = "ECOM"
    OTHER = "Other"

    @classmethod
    def from_token(cls, token: str) -> "Channel":
        """Maps a channel word found in a message onto the enum."""
        key = token.lower().replace(" ", "")
        return _CHANNEL_TOKENS.get(key, cls.OTHER)


_CHANNEL_TOKENS = {
    "pos": Channel.POS,
    "atm": Channel.ATM,
    "upi": Channel.UPI,
    "imps": Channel.IMPS,
    "neft": Channel.NEFT,
    "rtgs": Channel.RTGS,
    "netbanking": Channel.NET_BANKING,
    "ecom": Channel.ECOM,
}


class Category(str, Enum):
    FOOD = "food"
    SHOPPING = "shopping"
    TRANSPORT = "transport"
    UTILITIES = "utilities"
    ENTERTAINMENT = "entertainment"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    FINANCE = "finance"
    TRANSFER = "transfer"
    GROCERIES = "groceries"
    SUBSCRIPTION = "subscription"
    OTHER = "other"
