import re

from .transaction_type import Category

_AMOUNT = r"(\d[\d,]*(?:\.\d{1,2})?)"
_CURRENCY = r"(?:\binr|\brs\.?|\brupees|₹)"


class CompiledPatterns:
    class Intent:
        DEBIT = re.compile(
            r"\b(debited|spent|withdrawn|purchased?|paid|charged|deducted|"
            r"auto[\s-]?debit(?:ed)?|transferred\s+to)\b",
            re.IGNORECASE,
        )
        CREDIT = re.compile(
            r"\b(credited|received|deposit(?:ed)?|refund(?:ed)?|cashback|reversed|"
            r"transferred\s+from|salary|bonus|interest)\b",
            re.IGNORECASE,
        )

    class Amount:
        AFTER_DEBITED = re.compile(
            rf"\bdebited\s+(?:by\s*|with\s*)?{_CURRENCY}?\s*[:\-]?\s*{_AMOUNT}",
            re.IGNORECASE,
        )
        AFTER_CREDITED = re.compile(
            rf"\bcredited\s+(?:with\s+)?(?:by\s*)?{_CURRENCY}?\s*[:\-]?\s*{_AMOUNT}",
            re.IGNORECASE,
        )
        GENERIC = re.compile(rf"{_CURRENCY}\s*[:\-]?\s*{_AMOUNT}", re.IGNORECASE)
        BEFORE_KEYWORD = re.compile(
            rf"\b{_AMOUNT}\s*(?:is\s+)?(?:debited|credited|has\s+been)",
            re.IGNORECASE,
        )
        BALANCE_LABEL = re.compile(r"\b(?:bal|balance|limit|lmt)\b\W*$", re.IGNORECASE)

    class Balance:
        AVAILABLE = re.compile(
            rf"\b(?:avl|avail|available)\.?\s*(?:bal|balance)\.?\s*(?:is\s*)?[:\-]?\s*"
            rf"{_CURRENCY}?\s*[:\-]?\s*{_AMOUNT}",
            re.IGNORECASE,
        )

    class Account:
        MASKED_TAIL = re.compile(
            r"\b(?:a/c|ac(?:ct?|count)?)\.?\s*(?:no\.?\s*)?[x*]+(\d{3,6})\b",
            re.IGNORECASE,
        )

    class Reference:
        GENERIC = re.compile(
            r"\b(?:ref(?:erence)?(?:\s*no)?|rrn|utr|auth(?:[ \-]?code)?)\b\.?\s*[:\-]?\s*"
            r"([A-Z0-9\-]{6,})\b",
            re.IGNORECASE,
        )

    class Channel:
        TOKEN = re.compile(
            r"\b(pos|atm|ecom|upi|imps|neft|rtgs|net\s?banking|ecs|bbps|nach)\b",
            re.IGNORECASE,
        )

    class Date:
        CANDIDATE = re.compile(
            r"\b((?:\d{1,2}[-/]\d{1,2}[-/]\d{2,4})"
            r"|(?:\d{1,2}[-/]?[A-Za-z]{3}[-/]?\d{2,4})"
            r"|(?:\d{1,2}\s+[A-Za-z]{3,9}\s+\d{2,4}))"
            r"(?:\s+\d{1,2}:\d{2}(?::\d{2})?)?\b[^\dA-Za-z]?"
        )
        TRAILING_PUNCTUATION = re.compile(r"[^\dA-Za-z/\- ]+$")
        COMPACT_MONTH = re.compile(r"^(\d{1,2})([A-Za-z]{3})(\d{2}|\d{4})$")
        SEPARATED_MONTH = re.compile(r"^(\d{1,2})[-/]([A-Za-z]{3})[-/](\d{2}|\d{4})$")
        NUMERIC = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{2}|\d{4})$")
        SPELLED_MONTH = re.compile(r"^(\d{1,2})\s+([A-Za-z]{3,9})\s+(\d{2}|\d{4})$")

    class Merchant:
        UPI_ID = re.compile(r"\b([a-z0-9.\-_]+@[a-z0-9]+)\b", re.IGNORECASE)
        PERSON_CREDITED = re.compile(
            r"\b([A-Z][A-Za-z]+(?:\s+[A-Z][A-Za-z]+){1,3})\s+(?i:credited)\b"
        )
        PERSON_FROM_UPI = re.compile(
            r"\b(?i:from)\s+([A-Z][A-Za-z]+(?:\s+[A-Z][A-Za-z]+){1,3})\.\s*(?i:upi)\b"
        )
        AT_PATTERN = re.compile(r"\bat\s+([A-Za-z0-9&][A-Za-z0-9 &\-.]{2,40})", re.IGNORECASE)
        TO_FROM_PATTERN = re.compile(
            r"\b(?:to|from)\s+([A-Za-z0-9&][A-Za-z0-9 &\-.]{2,40})", re.IGNORECASE
        )
        VPA_PATTERN = re.compile(r"\bVPA\s+([A-Za-z0-9@.\-]+)", re.IGNORECASE)

    class Cleaning:
        TRAILING_CLAUSE = re.compile(
            r"(?:\.\s.*|\.$|\s+(?:on|ref|rrn|utr|avl|avail|available|bal|balance|upi|via|"
            r"using|info|txn|if|not|for|from|to|by|with|is|has|was)\b.*)$",
            re.IGNORECASE | re.DOTALL,
        )
        TRAILING_PARENTHESES = re.compile(r"\s*\(.*?\)\s*$")
        TRAILING_DASH = re.compile(r"\s*-\s*$")
        PVT_LTD = re.compile(r"(\s+PVT\.?\s*LTD\.?|\s+PRIVATE\s+LIMITED)$", re.IGNORECASE)
        WHITESPACE = re.compile(r"\s+")
        SPECIAL_CHARACTERS = re.compile(r"[^\w\s&\-.@]")
        ACCOUNT_REFERENCE = re.compile(r"^(?:a/?c|acc|acct|account|card)\b", re.IGNORECASE)
        MASKED_NUMBER = re.compile(r"^[x*]*\d+$", re.IGNORECASE)
        FORWARD_PREFIX = re.compile(
            r"^(?:FWD:|Forwarded message:|From\s+\+?\d+:)\s*", re.IGNORECASE
        )

    class Noise:
        OTP = re.compile(
            r"\b(?:otp|one[\s-]time[\s-]password|verification\s+code|cvv|pin)\b",
            re.IGNORECASE,
        )
        PROMOTIONAL = re.compile(
            r"\b(?:has\s+requested|payment\s+request|collect\s+request|requesting\s+payment|"
            r"pre[\s-]?approved|pre[\s-]?qualified|apply\s+now|offer\s+valid)\b",
            re.IGNORECASE,
        )
        ALL_PATTERNS = [OTP, PROMOTIONAL]

    class Transactional:
        BANK_KEYWORDS = [
            re.compile(p, re.IGNORECASE)
            for p in [
                r"\bdebited\b", r"\bcredited\b", r"\bavl\.?\s+bal", r"\bavailable\s+bal",
                r"\bimps\b", r"\bneft\b", r"\bupi\b", r"\ba/c\b", r"\bac\b", r"\baccount\b",
                r"\bcard\b", r"\bpos\b", r"\batm\b", r"\btransaction\b", r"\btransferred\b",
                r"\bpaid\b", r"\breceived\b", r"\bpurchase\b", r"\bwithdrawn\b",
                r"\brefund\b", r"\bcashback\b",
            ]
        ]

    class Categories:
        # Order matters: the first table entry that matches wins.
        ALL_PATTERNS = [
            (Category.FOOD, re.compile(
                r"zomato|swiggy|domino|pizza|mcdonald|kfc|burger|cafe|restaurant|\bfood\b|"
                r"\beat\b|dining|starbucks|dunkin", re.IGNORECASE)),
            (Category.SHOPPING, re.compile(
                r"amazon|flipkart|myntra|ajio|nykaa|shoppers|\bmall\b|\bmart\b|\bstore\b|"
                r"retail|meesho|snapdeal", re.IGNORECASE)),
            (Category.TRANSPORT, re.compile(
                r"\buber\b|\bola\b|rapido|\bmetro\b|irctc|railway|petrol|\bfuel\b|parking|"
                r"makemytrip|redbus|yatra", re.IGNORECASE)),
            (Category.UTILITIES, re.compile(
                r"\bjio\b|airtel|\bvi\b|vodafone|bsnl|electricity|\bwater\b|\bgas\b|\bbill\b|"
                r"recharge|broadband|tata power|bescom", re.IGNORECASE)),
            (Category.ENTERTAINMENT, re.compile(
                r"netflix|\bprime\b|hotstar|spotify|bookmyshow|\bmovie|\bgame|zee5|sonyliv|gaana",
                re.IGNORECASE)),
            (Category.HEALTHCARE, re.compile(
                r"pharmacy|medical|hospital|doctor|medicine|apollo|\b1mg\b|netmeds|pharmeasy|practo",
                re.IGNORECASE)),
            (Category.EDUCATION, re.compile(
                r"school|college|\bcourse|udemy|coursera|byju|unacademy|vedantu|upgrad",
                re.IGNORECASE)),
            (Category.FINANCE, re.compile(
                r"\bemi\b|\bloan\b|insurance|mutual fund|investment|interest|\blic\b|\bsip\b|\bppf\b",
                re.IGNORECASE)),
            (Category.TRANSFER, re.compile(r"transfer|\bneft\b|\bimps\b|\brtgs\b|\bupi\b", re.IGNORECASE)),
            (Category.GROCERIES, re.compile(
                r"bigbasket|grofers|blinkit|zepto|instamart|dmart|\bmore\b|spencers",
                re.IGNORECASE)),
            (Category.SUBSCRIPTION, re.compile(
                r"subscription|renewal|monthly|annual|premium", re.IGNORECASE)),
        ]
