from decimal import Decimal


class Constants:
    class Parsing:
        # Characters scanned around the intent keyword when looking for the amount
        WINDOW_BEFORE = 60
        WINDOW_AFTER = 120

        MAX_AMOUNT = Decimal("10000000")
        MIN_MERCHANT_NAME_LENGTH = 2
        MAX_MERCHANT_NAME_LENGTH = 50
        DESCRIPTION_LENGTH = 140

        DEFAULT_CURRENCY = "INR"
        UNKNOWN_MERCHANT = "Unknown"
        UNKNOWN_BANK = "Unknown"

    class Dedupe:
        DELIMITER = "|"
        NO_REFERENCE = "noref"
        NO_MERCHANT = "nomerch"
        NO_ACCOUNT_TAIL = "notail"

    class Scan:
        DEFAULT_LOOKBACK_DAYS = 90
        DEFAULT_MAX_MESSAGES = 500
