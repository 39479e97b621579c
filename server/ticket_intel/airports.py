# airports.py
# ---------------------------------------------------------------------
# Small reference tables for the carriers and airports the parsers see
# most. Explicit "(IATA)" text in a document always wins over these.

AIRLINE_CODES: dict[str, dict[str, str]] = {
    # ==== AFRICA ====
    "SA": {"icao": "SAA", "name": "South African Airways"},
    "ET": {"icao": "ETH", "name": "Ethiopian Airlines"},
    "KQ": {"icao": "KQA", "name": "Kenya Airways"},
    "AT": {"icao": "RAM", "name": "Royal Air Maroc"},
    "MS": {"icao": "MSR", "name": "EgyptAir"},
    "WB": {"icao": "RWD", "name": "RwandAir"},
    "FA": {"icao": "SFR", "name": "FlySafair"},
    "4Z": {"icao": "LNK", "name": "Airlink"},

    # ==== EUROPE ====
    "BA": {"icao": "BAW", "name": "British Airways"},
    "VS": {"icao": "VIR", "name": "Virgin Atlantic"},
    "AF": {"icao": "AFR", "name": "Air France"},
    "KL": {"icao": "KLM", "name": "KLM Royal Dutch Airlines"},
    "LH": {"icao": "DLH", "name": "Lufthansa"},
    "LX": {"icao": "SWR", "name": "Swiss International Air Lines"},
    "IB": {"icao": "IBE", "name": "Iberia"},
    "TK": {"icao": "THY", "name": "Turkish Airlines"},

    # ==== MIDDLE EAST / ASIA / OCEANIA ====
    "EK": {"icao": "UAE", "name": "Emirates"},
    "QR": {"icao": "QTR", "name": "Qatar Airways"},
    "EY": {"icao": "ETD", "name": "Etihad Airways"},
    "SQ": {"icao": "SIA", "name": "Singapore Airlines"},
    "CX": {"icao": "CPA", "name": "Cathay Pacific"},
    "QF": {"icao": "QFA", "name": "Qantas"},

    # ==== AMERICAS ====
    "AA": {"icao": "AAL", "name": "American Airlines"},
    "DL": {"icao": "DAL", "name": "Delta Air Lines"},
    "UA": {"icao": "UAL", "name": "United Airlines"},
}

# Merged into the document-derived city map, only for keys the
# document did not define itself.
CITY_ALIASES: dict[str, str] = {
    "accra": "ACC",
    "johannesburg": "JNB",
    "joburg": "JNB",
    "cape town": "CPT",
    "durban": "DUR",
    "london": "LHR",
    "heathrow": "LHR",
    "gatwick": "LGW",
    "lagos": "LOS",
    "abuja": "ABV",
    "nairobi": "NBO",
}

# Direct city → airport guesses for a time line with no "(IATA)" nearby.
DIRECT_CITY_CODES: dict[str, str] = {
    "accra": "ACC",
    "johannesburg": "JNB",
    "cape town": "CPT",
    "london": "LHR",
    "paris": "CDG",
    "frankfurt": "FRA",
    "amsterdam": "AMS",
}

AIRPORT_CITIES: dict[str, str] = {
    "ACC": "Accra",
    "JNB": "Johannesburg",
    "CPT": "Cape Town",
    "DUR": "Durban",
    "LHR": "London",
    "LGW": "London",
    "LOS": "Lagos",
    "ABV": "Abuja",
    "NBO": "Nairobi",
    "CDG": "Paris",
    "FRA": "Frankfurt",
    "AMS": "Amsterdam",
    "DXB": "Dubai",
    "JFK": "New York",
}

# Codes that PDF text layers sometimes render letter-spaced ("l h r").
OCR_SPACED_CODES = ("LHR", "JNB", "CPT", "ACC")

# ---------------------------------------------------------------------
# Cabin and passenger-type vocabularies

BA_CABIN_MAP: dict[str, str] = {
    "World Traveller": "ECONOMY",
    "Euro Traveller": "ECONOMY",
    "World Traveller Plus": "PREMIUM_ECONOMY",
    "Club Europe": "BUSINESS",
    "Club World": "BUSINESS",
    "Club Suite": "BUSINESS",
    "First": "FIRST",
}

GENERIC_CABIN_MAP: dict[str, str] = {
    "Economy": "ECONOMY",
    "Economy Class": "ECONOMY",
    "Premium Economy": "PREMIUM_ECONOMY",
    "Business": "BUSINESS",
    "Business Class": "BUSINESS",
    "First": "FIRST",
    "First Class": "FIRST",
}

CARRIER_CABIN_MAPS: dict[str, dict[str, str]] = {
    "BA": BA_CABIN_MAP,
}

PAX_TYPE_MAP: dict[str, str] = {
    "ADT": "adult",
    "CHD": "child",
    "INF": "infant",
}

MONTHS: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}


def city_for(iata: str | None) -> str | None:
    if not iata:
        return None
    return AIRPORT_CITIES.get(iata.upper())


def map_cabin(cabin: str | None, carrier: str | None = None) -> str | None:
    """Carrier table first, then the generic table, else the raw string."""
    if not cabin:
        return None
    clean = " ".join(cabin.split())
    tables = [CARRIER_CABIN_MAPS.get((carrier or "").upper(), {}), GENERIC_CABIN_MAP]
    for table in tables:
        for name, mapped in table.items():
            if name.lower() == clean.lower():
                return mapped
    return clean
