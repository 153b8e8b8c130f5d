from servicemarket.models import CatalogLocation

SUBURBS: tuple[CatalogLocation, ...] = (
    CatalogLocation(name="Sydney CBD", lat=-33.8688, lng=151.2093),
    CatalogLocation(name="Parramatta", lat=-33.8136, lng=151.0034),
    CatalogLocation(name="Chatswood", lat=-33.7968, lng=151.1832),
    CatalogLocation(name="Hurstville", lat=-33.9673, lng=151.1023),
    CatalogLocation(name="Bondi", lat=-33.8915, lng=151.2767),
    CatalogLocation(name="Newtown", lat=-33.8973, lng=151.1794),
    CatalogLocation(name="Manly", lat=-33.8000, lng=151.2858),
    CatalogLocation(name="Cronulla", lat=-33.0570, lng=151.1520),
    CatalogLocation(name="Blacktown", lat=-33.7710, lng=150.9060),
    CatalogLocation(name="Hornsby", lat=-33.7042, lng=151.1000),
)

CATEGORIES: tuple[str, ...] = (
    "Cleaning",
    "Plumbing",
    "Gardening",
    "Tutoring",
    "Electrician",
    "Personal Training",
)

FIRST_NAMES: tuple[str, ...] = (
    "John",
    "Jane",
    "Peter",
    "Mary",
    "David",
    "Sarah",
    "Michael",
    "Emily",
    "Chris",
    "Laura",
)

LAST_NAMES: tuple[str, ...] = (
    "Smith",
    "Jones",
    "Williams",
    "Brown",
    "Wilson",
    "Taylor",
    "Johnson",
    "White",
    "Martin",
    "Anderson",
)
