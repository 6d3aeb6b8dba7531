"""
Static New York State sales-tax tables.

Rates come from NYS Publication 718 (2024 Q4) and are keyed by 5-digit county
FIPS code (36 = New York State). Rate structure:
  state_rate   - NY State base rate (4% everywhere)
  county_rate  - County / NYC local rate
  city_rate    - MCTD surcharge (0.375%) in the metro counties, 0 elsewhere
  special_rate - Additional special district rate

Sub-county city rates (e.g. Yonkers) are not modelled.

Everything here is process-wide, read-only state built at import time.
"""

from decimal import Decimal
from types import MappingProxyType

from taxflow.core.models import BoundingBox, JurisdictionRate

STATE_RATE = Decimal("0.04")
MCTD_RATE = Decimal("0.00375")
NYC_LOCAL_RATE = Decimal("0.045")

# Coarse pre-check before any lookup
NY_BOUNDS = BoundingBox(min_lat=40.17, max_lat=45.02, min_lon=-79.77, max_lon=-71.48)


def _nyc(borough: str, fips: str) -> tuple[str, JurisdictionRate]:
    return fips, JurisdictionRate(
        name=f"New York City ({borough})",
        state_rate=STATE_RATE,
        county_rate=NYC_LOCAL_RATE,
        city_rate=MCTD_RATE,
        county_fips=fips,
        jurisdictions=("New York State", "New York City", "MCTD"),
    )


def _county(name: str, fips: str, county_rate: str, mctd: bool = False) -> tuple[str, JurisdictionRate]:
    breadcrumb = ("New York State", name, "MCTD") if mctd else ("New York State", name)
    return fips, JurisdictionRate(
        name=name,
        state_rate=STATE_RATE,
        county_rate=Decimal(county_rate),
        city_rate=MCTD_RATE if mctd else Decimal("0"),
        county_fips=fips,
        jurisdictions=breadcrumb,
    )


COUNTY_RATES: MappingProxyType[str, JurisdictionRate] = MappingProxyType(dict([
    # New York City: five counties sharing one 8.875% composite rate
    _nyc("Bronx", "36005"),
    _nyc("Brooklyn", "36047"),
    _nyc("Manhattan", "36061"),
    _nyc("Queens", "36081"),
    _nyc("Staten Island", "36085"),

    # Suburban MCTD counties
    _county("Nassau County", "36059", "0.0425", mctd=True),
    _county("Suffolk County", "36103", "0.0425", mctd=True),
    _county("Westchester County", "36119", "0.04", mctd=True),
    _county("Rockland County", "36087", "0.04", mctd=True),
    _county("Orange County", "36071", "0.0375", mctd=True),
    _county("Dutchess County", "36027", "0.0375", mctd=True),
    _county("Putnam County", "36079", "0.04", mctd=True),

    # Hudson Valley
    _county("Ulster County", "36111", "0.0375"),
    _county("Greene County", "36039", "0.04"),
    _county("Columbia County", "36021", "0.04"),
    _county("Warren County", "36113", "0.04"),
    _county("Washington County", "36115", "0.04"),
    _county("Saratoga County", "36091", "0.03"),

    # Capital Region
    _county("Albany County", "36001", "0.04"),
    _county("Schenectady County", "36093", "0.04"),
    _county("Rensselaer County", "36083", "0.04"),
    _county("Fulton County", "36035", "0.04"),
    _county("Montgomery County", "36057", "0.045"),
    _county("Otsego County", "36077", "0.04"),

    # Adirondacks / North Country
    _county("Clinton County", "36019", "0.04"),
    _county("Essex County", "36031", "0.04"),
    _county("Franklin County", "36033", "0.04"),
    _county("Jefferson County", "36045", "0.04"),
    _county("Lewis County", "36049", "0.04"),
    _county("St. Lawrence County", "36089", "0.04"),
    _county("Hamilton County", "36041", "0.04"),
    _county("Herkimer County", "36043", "0.0425"),

    # Central NY and Southern Tier
    _county("Oneida County", "36065", "0.0475"),
    _county("Onondaga County", "36067", "0.04"),
    _county("Madison County", "36053", "0.04"),
    _county("Monroe County", "36055", "0.04"),
    _county("Cayuga County", "36011", "0.04"),
    _county("Seneca County", "36099", "0.04"),
    _county("Tompkins County", "36109", "0.04"),
    _county("Tioga County", "36107", "0.04"),
    _county("Broome County", "36007", "0.04"),
    _county("Cortland County", "36023", "0.04"),
    _county("Schoharie County", "36095", "0.04"),
    _county("Schuyler County", "36097", "0.04"),
    _county("Steuben County", "36101", "0.04"),
    _county("Cattaraugus County", "36009", "0.05"),
    _county("Allegany County", "36003", "0.045"),

    # Finger Lakes / Western NY
    _county("Livingston County", "36051", "0.04"),
    _county("Ontario County", "36069", "0.04"),
    _county("Wayne County", "36117", "0.04"),
    _county("Yates County", "36123", "0.04"),
    _county("Erie County", "36029", "0.0475"),
    _county("Niagara County", "36063", "0.0475"),
    _county("Chemung County", "36015", "0.04"),
    _county("Chautauqua County", "36013", "0.04"),
    _county("Chenango County", "36017", "0.04"),
    _county("Delaware County", "36025", "0.04"),
    _county("Genesee County", "36037", "0.04"),
    _county("Orleans County", "36073", "0.04"),
    _county("Oswego County", "36075", "0.04"),
    _county("Sullivan County", "36105", "0.04"),
    _county("Wyoming County", "36121", "0.04"),
]))

FALLBACK_RATE = JurisdictionRate(
    name="New York State (fallback)",
    state_rate=STATE_RATE,
    county_rate=Decimal("0.04"),
    jurisdictions=("New York State",),
)

# Approximate county rectangles, checked in order; the first hit wins.
# Boxes overlap along county lines, so NYC boroughs go first.
JURISDICTION_BOXES: tuple[tuple[str, BoundingBox], ...] = (
    ("36061", BoundingBox(min_lat=40.700, max_lat=40.882, min_lon=-74.020, max_lon=-73.907)),
    ("36005", BoundingBox(min_lat=40.785, max_lat=40.917, min_lon=-73.933, max_lon=-73.765)),
    ("36047", BoundingBox(min_lat=40.570, max_lat=40.739, min_lon=-74.042, max_lon=-73.833)),
    ("36081", BoundingBox(min_lat=40.541, max_lat=40.800, min_lon=-73.962, max_lon=-73.700)),
    ("36085", BoundingBox(min_lat=40.496, max_lat=40.651, min_lon=-74.255, max_lon=-74.052)),
    ("36059", BoundingBox(min_lat=40.544, max_lat=40.890, min_lon=-73.767, max_lon=-73.424)),
    ("36103", BoundingBox(min_lat=40.600, max_lat=41.160, min_lon=-73.500, max_lon=-71.856)),
    ("36119", BoundingBox(min_lat=40.880, max_lat=41.370, min_lon=-73.982, max_lon=-73.483)),
    ("36087", BoundingBox(min_lat=41.020, max_lat=41.370, min_lon=-74.235, max_lon=-73.890)),
    ("36079", BoundingBox(min_lat=41.320, max_lat=41.520, min_lon=-73.985, max_lon=-73.510)),
    ("36071", BoundingBox(min_lat=41.140, max_lat=41.620, min_lon=-74.780, max_lon=-73.950)),
    ("36027", BoundingBox(min_lat=41.480, max_lat=42.080, min_lon=-73.950, max_lon=-73.485)),
    ("36111", BoundingBox(min_lat=41.580, max_lat=42.190, min_lon=-74.790, max_lon=-73.940)),
    ("36001", BoundingBox(min_lat=42.420, max_lat=42.830, min_lon=-74.270, max_lon=-73.680)),
    ("36093", BoundingBox(min_lat=42.720, max_lat=42.970, min_lon=-74.270, max_lon=-73.850)),
    ("36083", BoundingBox(min_lat=42.420, max_lat=42.950, min_lon=-73.680, max_lon=-73.260)),
    ("36091", BoundingBox(min_lat=42.770, max_lat=43.370, min_lon=-74.110, max_lon=-73.580)),
    ("36029", BoundingBox(min_lat=42.440, max_lat=43.100, min_lon=-79.070, max_lon=-78.460)),
    ("36063", BoundingBox(min_lat=43.080, max_lat=43.380, min_lon=-79.080, max_lon=-78.460)),
    ("36055", BoundingBox(min_lat=42.940, max_lat=43.370, min_lon=-78.000, max_lon=-77.370)),
    ("36067", BoundingBox(min_lat=42.770, max_lat=43.280, min_lon=-76.500, max_lon=-75.890)),
    ("36065", BoundingBox(min_lat=42.850, max_lat=43.630, min_lon=-75.890, max_lon=-75.060)),
    ("36109", BoundingBox(min_lat=42.260, max_lat=42.630, min_lon=-76.700, max_lon=-76.240)),
    ("36007", BoundingBox(min_lat=42.000, max_lat=42.420, min_lon=-76.130, max_lon=-75.400)),
)


def is_in_new_york(lat: float, lon: float) -> bool:
    """Coarse state-level check, inclusive of the box edges."""
    return NY_BOUNDS.contains(lat, lon)
