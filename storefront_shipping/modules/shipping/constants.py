"""
Shipping constants: coverage keywords, ranking priorities and the Mexican
state catalogue used for zone matching.
"""
from typing import Dict

from storefront_shipping.models.shipping import ZoneType

# Rule documents mark state coverage as "estado_<abbr>" inside zipcodes
STATE_PREFIX = "estado_"
NATIONAL_KEYWORD = "nacional"
WILDCARD = "*"

# Lower value = shown first
DEFAULT_PRIORITIES: Dict[str, int] = {
    ZoneType.EXPRESS.value: 10,
    ZoneType.LOCAL.value: 20,
    ZoneType.NATIONAL.value: 30,
    ZoneType.INTERNATIONAL.value: 40,
    ZoneType.STANDARD.value: 50,
}
UNKNOWN_PRIORITY = 100

EXPRESS_TERMS = ("express", "rapido", "urgente", "24h", "same day", "mismo dia")
LOCAL_TERMS = ("local", "pickup", "recogida", "recoger en tienda")

ZONE_LABELS: Dict[ZoneType, str] = {
    ZoneType.EXPRESS: "Envío express",
    ZoneType.LOCAL: "Envío local",
    ZoneType.NATIONAL: "Envío nacional",
    ZoneType.INTERNATIONAL: "Envío internacional",
    ZoneType.STANDARD: "Envío estándar",
}

# ISO 3166-2:MX codes keyed by accent-free, lower-case state name
STATE_CODES: Dict[str, str] = {
    "aguascalientes": "AGU",
    "baja california": "BCN",
    "baja california sur": "BCS",
    "campeche": "CAM",
    "chiapas": "CHP",
    "chihuahua": "CHH",
    "ciudad de mexico": "CMX",
    "coahuila": "COA",
    "colima": "COL",
    "durango": "DUR",
    "guanajuato": "GUA",
    "guerrero": "GRO",
    "hidalgo": "HID",
    "jalisco": "JAL",
    "estado de mexico": "MEX",
    "michoacan": "MIC",
    "morelos": "MOR",
    "nayarit": "NAY",
    "nuevo leon": "NLE",
    "oaxaca": "OAX",
    "puebla": "PUE",
    "queretaro": "QUE",
    "quintana roo": "ROO",
    "san luis potosi": "SLP",
    "sinaloa": "SIN",
    "sonora": "SON",
    "tabasco": "TAB",
    "tamaulipas": "TAM",
    "tlaxcala": "TLA",
    "veracruz": "VER",
    "yucatan": "YUC",
    "zacatecas": "ZAC",
}

STATE_ALIASES: Dict[str, str] = {
    "cdmx": "CMX",
    "df": "CMX",
    "distrito federal": "CMX",
    "mexico": "MEX",
    "edomex": "MEX",
    "edo mex": "MEX",
    "coahuila de zaragoza": "COA",
    "michoacan de ocampo": "MIC",
    "veracruz de ignacio de la llave": "VER",
}
