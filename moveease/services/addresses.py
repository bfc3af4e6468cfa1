# moveease/services/addresses.py
from typing import List

# Stand-in for a places API
KNOWN_ADDRESSES = [
    "123 Main St, New York, NY 10001",
    "456 Oak Ave, Los Angeles, CA 90001",
    "789 Pine Rd, Chicago, IL 60601",
    "101 Maple Dr, Houston, TX 77001",
    "202 Cedar Ln, Philadelphia, PA 19019",
    "303 Elm St, San Diego, CA 92101",
    "404 Birch Ave, San Francisco, CA 94016",
    "505 Willow Rd, Boston, MA 02101",
    "606 Spruce Dr, Seattle, WA 98101",
    "707 Ash Ln, Miami, FL 33101",
    "1515 Broadway, New York, NY 10036",
    "1600 Pennsylvania Ave, Washington, DC 20500",
    "233 S Wacker Dr, Chicago, IL 60606",
    "350 5th Ave, New York, NY 10118",
    "843 Brickell Ave, Miami, FL 33131",
]
MIN_QUERY_LENGTH = 3
MAX_SUGGESTIONS = 5


def suggest_addresses(query: str) -> List[str]:
    q = (query or "").strip().lower()
    if len(q) < MIN_QUERY_LENGTH:
        return []
    return [a for a in KNOWN_ADDRESSES if q in a.lower()][:MAX_SUGGESTIONS]
