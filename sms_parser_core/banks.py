import re
from dataclasses import dataclass
from typing import List, Optional, Pattern


@dataclass(frozen=True)
class KnownBank:
    name: str
    content_pattern: Optional[Pattern]
    sender_pattern: Optional[Pattern]


def _content(pattern: str) -> Pattern:
    return re.compile(rf"\b(?:{pattern})\b", re.IGNORECASE)


def _sender(pattern: str) -> Pattern:
    return re.compile(pattern, re.IGNORECASE)


KNOWN_BANKS = [
    KnownBank("HDFC Bank", _content("hdfc"), _sender(r"HDFCBK|HDFC")),
    KnownBank("State Bank of India", _content("sbi"), _sender(r"SBIINB|SBICRD|ATMSBI|SBI")),
    KnownBank("ICICI Bank", _content("icici"), _sender(r"ICICIB|ICICI")),
    KnownBank("Axis Bank", _content("axis"), _sender(r"AXISBK|AXIS")),
    KnownBank("Kotak Mahindra Bank", _content("kotak"), _sender(r"KOTAKB|KOTAK")),
    KnownBank("IDFC First Bank", _content("idfc"), _sender(r"IDFCFB|IDFC")),
    KnownBank("Bank of India", _content("boi"), _sender(r"BOIIND|BOI")),
    KnownBank("Bank of Baroda", _content("bob"), None),
    KnownBank("Punjab National Bank", _content("pnb"), _sender(r"PNBSMS|PNB")),
    KnownBank("Yes Bank", _content("yes bank"), _sender(r"YESBK|YESBNK")),
    KnownBank("Canara Bank", _content("canara"), _sender(r"CANBNK|CANARA")),
    KnownBank("Union Bank of India", _content("union"), _sender(r"UNIONB|UNION")),
    KnownBank("IndusInd Bank", _content("indusind"), _sender(r"INDUSB|INDUS")),
    KnownBank("Federal Bank", _content("federal"), None),
    KnownBank("Paytm", _content("paytm"), _sender(r"PAYTM")),
    KnownBank("PhonePe", _content("phonepe"), _sender(r"PHONEPE")),
    KnownBank("Google Pay", _content("google pay|gpay"), _sender(r"GPAY")),
    KnownBank("Amazon Pay", _content("amazon pay"), _sender(r"AMZN|AMAZON")),
    KnownBank("Juspay", None, _sender(r"JUSPAY")),
    KnownBank("Razorpay", None, _sender(r"RAZORPAY")),
]


class BankRegistry:
    """
    Lookup over the known bank/PSP table.
    Content matching and sender matching are kept separate: the bank hint of a
    transaction only ever comes from the message text.
    """

    def __init__(self, banks: List[KnownBank] = None):
        self.banks = banks if banks is not None else KNOWN_BANKS

    def find_in_content(self, message: str) -> Optional[str]:
        """Returns the bank whose name appears earliest in the message body."""
        best = None
        for bank in self.banks:
            if bank.content_pattern is None:
                continue
            m = bank.content_pattern.search(message)
            if m and (best is None or m.start() < best[0]):
                best = (m.start(), bank.name)
        return best[1] if best else None

    def is_known_sender(self, sender: Optional[str]) -> bool:
        if not sender:
            return False
        return any(
            bank.sender_pattern.search(sender)
            for bank in self.banks
            if bank.sender_pattern is not None
        )

    def all(self) -> List[KnownBank]:
        return self.banks
