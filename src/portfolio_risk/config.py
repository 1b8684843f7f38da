from pydantic import BaseModel

TRADING_DAYS = 252

# Sectors treated as moderately co-moving with each other in the
# portfolio-variance heuristic.
MAJOR_SECTORS: frozenset[str] = frozenset({"Financials", "IT", "Healthcare"})

KNOWN_SECTORS: tuple[str, ...] = (
    "IT",
    "Financials",
    "Consumer",
    "Healthcare",
    "Energy",
    "Materials",
    "Industrials",
    "Auto",
    "Telecom",
    "Utilities",
    "Real Estate",
    "Other",
)

TICKER_SECTOR: dict[str, str] = {
    "RELIANCE": "Energy",
    "TCS": "IT",
    "HDFCBANK": "Financials",
    "INFY": "IT",
    "HINDUNILVR": "Consumer",
    "ITC": "Consumer",
    "SBIN": "Financials",
    "BHARTIARTL": "Telecom",
    "KOTAKBANK": "Financials",
    "LT": "Industrials",
    "ASIANPAINT": "Materials",
    "AXISBANK": "Financials",
    "MARUTI": "Auto",
    "SUNPHARMA": "Healthcare",
    "NESTLEIND": "Consumer",
    "WIPRO": "IT",
    "HCLTECH": "IT",
    "TECHM": "IT",
    "ICICIBANK": "Financials",
    "BAJFINANCE": "Financials",
    "HDFC": "Financials",
    "INDUSINDBK": "Financials",
    "BAJAJFINSV": "Financials",
    "TITAN": "Consumer",
    "UPL": "Materials",
    "GRASIM": "Materials",
    "JSWSTEEL": "Materials",
    "COALINDIA": "Energy",
    "ONGC": "Energy",
    "BPCL": "Energy",
    "IOC": "Energy",
    "DRREDDY": "Healthcare",
    "CIPLA": "Healthcare",
    "BIOCON": "Healthcare",
    "DIVISLAB": "Healthcare",
    "APOLLOHOSP": "Healthcare",
    "MCDOWELL": "Consumer",
    "GODREJCP": "Consumer",
    "DABUR": "Consumer",
    "BRITANNIA": "Consumer",
    "TATAMOTORS": "Auto",
    "BAJAJ-AUTO": "Auto",
    "EICHERMOT": "Auto",
    "M&M": "Auto",
    "HEROMOTOCO": "Auto",
    "BHEL": "Industrials",
    "SIEMENS": "Industrials",
    "ABB": "Industrials",
    "LALPATHLAB": "Healthcare",
    "ZOMATO": "Consumer",
    "PAYTM": "Financials",
    "ADANIPORTS": "Industrials",
    "ADANIGREEN": "Energy",
    "ADANITRANS": "Utilities",
    "ADANIPOWER": "Energy",
    "ADANIENT": "Materials",
    "EIEL": "Industrials",
    "IRFC": "Financials",
    "TATASTEEL": "Materials",
    # Names as some brokers export them
    "HDFC BANK": "Financials",
    "ICICI BANK": "Financials",
    "KOTAK BANK": "Financials",
    "AXIS BANK": "Financials",
    "SBI": "Financials",
    "BHARTI AIRTEL": "Telecom",
    "EICHER MOTORS": "Auto",
    "HERO MOTOCORP": "Auto",
    "DIVIS LAB": "Healthcare",
    "APOLLO HOSPITALS": "Healthcare",
    "ASIAN PAINTS": "Materials",
    "ULTRATECH CEMENT": "Materials",
    "JSW STEEL": "Materials",
    "COAL INDIA": "Energy",
    "ADANI PORTS": "Industrials",
    "ADANI GREEN": "Energy",
    "ADANI TRANSMISSION": "Utilities",
    "ADANI ENTERPRISES": "Materials",
    "LARSEN & TOUBRO": "Industrials",
}

# Ordered: the first sector with a matching keyword wins.
SECTOR_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Financials", ("BANK", "FINANCE", "NBFC", "INSURANCE", "FINANCIAL")),
    ("Energy", ("OIL", "GAS", "POWER", "ENERGY", "COAL")),
    ("Healthcare", ("PHARMA", "HEALTH", "HOSPITAL", "LIFE SCIENCE")),
    ("IT", ("TECH", "SOFTWARE", "IT", "INFOSYS", "TCS")),
    ("Telecom", ("TELECOM", "COMMUNICATION", "AIRTEL", "VODAFONE")),
    ("Auto", ("AUTO", "MOTOR", "MARUTI", "TATA MOTORS", "ASHOK LEYLAND")),
    ("Materials", ("STEEL", "METAL", "ALUMIN", "COPPER", "ZINC")),
    (
        "Industrials",
        ("CEMENT", "ENGINEER", "INFRA", "CONSTRUCT", "LARSEN", "LT"),
    ),
    ("Materials", ("CHEM", "FERTILIZER", "AGRI", "AGRO")),
    (
        "Consumer",
        (
            "FOOD",
            "BEVERAGE",
            "CONSUMER",
            "FMCG",
            "HINDUSTAN UNILEVER",
            "NESTLE",
        ),
    ),
    ("Real Estate", ("REALTY", "REAL ESTATE", "DLF", "LODHA")),
    ("Materials", ("PAINT",)),
)

ALLOWED_EXTENSIONS: tuple[str, ...] = (".csv", ".xlsx", ".xls")

ALLOWED_MIME_TYPES: dict[str, tuple[str, ...]] = {
    ".csv": ("text/csv", "application/csv"),
    ".xlsx": (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ),
    ".xls": (
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ),
}

MB = 1024 * 1024


class IngestionLimits(BaseModel):
    csv_max_bytes: int = 5 * MB
    excel_max_bytes: int = 10 * MB
    min_rows: int = 5
    max_rows: int = 50_000
    chunk_size: int = 1_000
    header_scan_rows: int = 15


class AnalysisConfig(BaseModel):
    risk_free_rate: float = 0.02
    benchmark_ticker: str | None = "^GSPC"

    price_source: str = "http"  # "http" or "yfinance"
    history_url: str | None = None
    request_timeout: float = 10.0
    lookback_days: int = 365
    max_workers: int = 4

    history_points: int = 30
    min_correlation_points: int = 10
    min_drawdown_observations: int = 20
