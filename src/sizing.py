import math

UK_RING_SIZES_MM = {
    "A": 37.8,
    "B": 39.1,
    "C": 40.4,
    "D": 41.7,
    "E": 42.9,
    "F": 44.2,
    "G": 45.5,
    "H": 46.8,
    "I": 48.0,
    "J": 49.3,
    "K": 50.6,
    "L": 51.9,
    "M": 53.1,
    "N": 54.4,
    "O": 55.7,
    "P": 57.0,
    "Q": 58.3,
    "R": 59.5,
    "S": 60.8,
    "T": 62.1,
    "U": 63.4,
    "V": 64.6,
    "W": 65.9,
    "X": 67.2,
    "Y": 68.5,
    "Z": 69.7,
}

# Inner diameter in inches for the common Indian bangle sizes.
BANGLE_SIZES_IN = {
    "2-2": 2.125,
    "2-4": 2.25,
    "2-6": 2.375,
    "2-8": 2.5,
    "2-10": 2.625,
    "2-12": 2.75,
}

NECKLACE_LENGTHS_IN = {
    "Choker": "14-16",
    "Princess": "18",
    "Matinee": "20-24",
    "Opera": "28-36",
    "Rope": "37+",
}

RING_SIZE_SYSTEMS = ["UK", "US", "EU", "Indian", "JP"]


def uk_size_options() -> list[tuple[str, float]]:
    options: list[tuple[str, float]] = []
    for label, circumference in UK_RING_SIZES_MM.items():
        options.append((label, circumference))
        options.append((f"{label} 1/2", circumference + 0.6))
    return options


def circumference_from_size(system: str, size: float | str) -> float:
    """Inner circumference in mm for a ring size in the given system."""
    if system == "UK":
        lookup = dict(uk_size_options())
        if size not in lookup:
            raise ValueError(f"Unknown UK ring size '{size}'")
        return float(lookup[size])
    if system == "US":
        return (11.63 + float(size) * 0.8128) * math.pi
    if system in ("Indian", "JP"):
        return float(size) + 40.0
    if system == "EU":
        return float(size)
    raise ValueError(f"Unsupported ring size system '{system}'")


def convert_ring_size(circumference_mm: float) -> dict[str, str]:
    diameter_mm = circumference_mm / math.pi
    us_size = (diameter_mm - 11.63) / 0.8128
    indian_size = circumference_mm - 40.0
    closest_uk = min(uk_size_options(), key=lambda item: abs(item[1] - circumference_mm))

    return {
        "UK": closest_uk[0],
        "US": f"{round(us_size * 4) / 4:.2f}",
        "EU": f"{circumference_mm:.1f}",
        "Indian": f"{max(round(indian_size), 1)}",
        "JP": f"{round(indian_size * 2) / 2:.1f}",
        "Diameter (mm)": f"{diameter_mm:.2f}",
    }


def bangle_size_for_wrist(diameter_in: float) -> str:
    """Smallest bangle that clears the given hand width (inches)."""
    for label, inner in BANGLE_SIZES_IN.items():
        if inner >= diameter_in:
            return label
    return list(BANGLE_SIZES_IN)[-1]
