"""Accessory / airframe model compatibility.

Accessory catalog entries carry a free-text ``model_compatibility`` list
("Mavic 3", "Matrice 200", ...). Equipment carries the exact commercial model
name ("Mavic 3 Pro", "Matrice 210 RTK V2"). Matching goes through a family
table and then a loose case-insensitive substring test in both directions, so
free-text entries typed by operators still line up with the catalog.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

# Known models per manufacturer, as offered by the equipment form.
EQUIPMENT_MODELS: dict[str, tuple[str, ...]] = {
    "DJI": (
        # Mavic
        "Mavic 3",
        "Mavic 3 Pro",
        "Mavic 3 Classic",
        "Mavic 3 Cine",
        "Mavic Air 2S",
        "Mavic Air 2",
        "Mavic Air",
        "Mavic Mini 3",
        "Mavic Mini 3 Pro",
        "Mavic Mini 2",
        "Mavic Mini",
        "Mavic 2 Pro",
        "Mavic 2 Zoom",
        "Mavic 2 Enterprise",
        "Mavic Pro",
        "Mavic Pro Platinum",
        # Mini
        "DJI Mini 4 Pro",
        "DJI Mini 3",
        "DJI Mini 3 Pro",
        "DJI Mini 2",
        "DJI Mini SE",
        # Air
        "DJI Air 3",
        "DJI Air 2S",
        "DJI Air 2",
        # Matrice
        "Matrice 350 RTK",
        "Matrice 300 RTK",
        "Matrice 300",
        "Matrice 30",
        "Matrice 30T",
        "Matrice 210 V2",
        "Matrice 210 RTK V2",
        "Matrice 210",
        "Matrice 210 RTK",
        "Matrice 200",
        "Matrice 600 Pro",
        "Matrice 600",
        "Matrice 100",
        # Phantom
        "Phantom 4 RTK",
        "Phantom 4 Pro V2.0",
        "Phantom 4 Pro",
        "Phantom 4 Advanced",
        "Phantom 4",
        "Phantom 3 Professional",
        "Phantom 3 Advanced",
        "Phantom 3 Standard",
        "Phantom 3 4K",
        # Inspire
        "Inspire 3",
        "Inspire 2",
        "Inspire 1 Pro",
        "Inspire 1",
        # FPV
        "DJI FPV",
        "DJI Avata 2",
        "DJI Avata",
        # Agras
        "Agras T50",
        "Agras T40",
        "Agras T30",
        "Agras T25",
        "Agras T20",
        "Agras T16",
        "Agras MG-1P",
        # Others
        "Spark",
        "Ryze Tello",
        "Robomaster TT",
    ),
    "Autel Robotics": (
        "EVO II Pro",
        "EVO II Dual",
        "EVO II Pro 6K",
        "EVO II Pro Rugged Bundle",
        "EVO II RTK",
        "EVO Max 4T",
        "EVO Max 4N",
        "EVO Lite+",
        "EVO Lite",
        "EVO Nano+",
        "EVO Nano",
        "Dragonfish Pro",
        "Dragonfish Standard",
        "Dragonfish Lite",
        "Alpha",
        "Titan",
    ),
    "Dahua": (
        "Dahua X820",
        "Dahua X1200",
        "Dahua X1500",
        "Dahua X2000",
        "Sky Eye X8-2000",
        "Sky Eye X10-3000",
        "Sky Eye X12-4000",
        "Sky Eye X15-5000",
        "Dahua Pro X1",
        "Dahua Pro X2",
        "Dahua Pro X3",
    ),
    "Parrot": (
        "ANAFI",
        "ANAFI Thermal",
        "ANAFI USA",
        "ANAFI Ai",
        "Bebop 2",
        "Disco FPV",
        "Mambo",
        "Swing",
    ),
    "Skydio": (
        "Skydio 2",
        "Skydio 2+",
        "Skydio X2",
        "Skydio X2D",
        "Skydio X2E",
    ),
    "Yuneec": (
        "Typhoon H520",
        "Typhoon H Plus",
        "Typhoon H3",
        "Mantis G",
        "Mantis Q",
        "Breeze 4K",
        "E90",
        "E10T",
    ),
}


# Specific model -> family tokens used on catalog entries.
MODEL_COMPATIBILITY_MAP: dict[str, tuple[str, ...]] = {
    # Matrice 200 series
    "Matrice 210": ("Matrice 200",),
    "Matrice 210 RTK": ("Matrice 200",),
    "Matrice 210 V2": ("Matrice 200",),
    "Matrice 210 RTK V2": ("Matrice 200",),
    "Matrice 200": ("Matrice 200",),
    # Matrice 300 series
    "Matrice 350 RTK": ("Matrice 300",),
    "Matrice 300": ("Matrice 300",),
    "Matrice 300 RTK": ("Matrice 300",),
    "Matrice 30": ("Matrice 300",),
    "Matrice 30T": ("Matrice 300",),
    # Mavic 3 series
    "Mavic 3": ("Mavic 3",),
    "Mavic 3 Pro": ("Mavic 3",),
    "Mavic 3 Classic": ("Mavic 3",),
    "Mavic 3 Cine": ("Mavic 3",),
    "Mavic Mini 3": ("Mavic 3",),
    "Mavic Mini 3 Pro": ("Mavic 3",),
    # Mavic 2 series
    "Mavic 2 Pro": ("Mavic 2",),
    "Mavic 2 Zoom": ("Mavic 2",),
    "Mavic 2 Enterprise": ("Mavic 2",),
    # Air
    "DJI Air 3": ("Air 3",),
    "DJI Air 2S": ("Air 2S",),
    "Mavic Air 2S": ("Air 2S",),
    "DJI Air 2": ("Air 2",),
    "Mavic Air 2": ("Air 2",),
    "Mavic Air": ("Air",),
    # Mini
    "DJI Mini 4 Pro": ("Mini 4",),
    "DJI Mini 3": ("Mini 3",),
    "DJI Mini 3 Pro": ("Mini 3",),
    "DJI Mini 2": ("Mini 2",),
    "Mavic Mini 2": ("Mini 2",),
    "DJI Mini SE": ("Mini",),
    "Mavic Mini": ("Mini",),
    # Phantom
    "Phantom 4 RTK": ("Phantom 4",),
    "Phantom 4 Pro V2.0": ("Phantom 4",),
    "Phantom 4 Pro": ("Phantom 4",),
    "Phantom 4 Advanced": ("Phantom 4",),
    "Phantom 4": ("Phantom 4",),
    "Phantom 3 Professional": ("Phantom 3",),
    "Phantom 3 Advanced": ("Phantom 3",),
    "Phantom 3 Standard": ("Phantom 3",),
    "Phantom 3 4K": ("Phantom 3",),
    # Inspire
    "Inspire 3": ("Inspire",),
    "Inspire 2": ("Inspire",),
    "Inspire 1 Pro": ("Inspire",),
    "Inspire 1": ("Inspire",),
    # Autel EVO II
    "EVO II Pro": ("EVO II",),
    "EVO II Dual": ("EVO II",),
    "EVO II Pro 6K": ("EVO II",),
    "EVO II Pro Rugged Bundle": ("EVO II",),
    "EVO II RTK": ("EVO II",),
    # Autel EVO Max
    "EVO Max 4T": ("EVO Max",),
    "EVO Max 4N": ("EVO Max",),
    # Autel EVO Nano
    "EVO Nano+": ("EVO Nano",),
    "EVO Nano": ("EVO Nano",),
    # Autel EVO Lite
    "EVO Lite+": ("EVO Lite",),
    "EVO Lite": ("EVO Lite",),
    # Dahua
    "Dahua X820": ("X820",),
    "Dahua X1200": ("X820", "X1200"),
    "Dahua X1500": ("X1500",),
    "Dahua X2000": ("X2000",),
    # Parrot
    "ANAFI": ("ANAFI",),
    "ANAFI Thermal": ("ANAFI",),
    "ANAFI USA": ("ANAFI",),
    "ANAFI Ai": ("ANAFI",),
    # Skydio
    "Skydio 2": ("Skydio 2",),
    "Skydio 2+": ("Skydio 2",),
    "Skydio X2": ("Skydio X2",),
    "Skydio X2D": ("Skydio X2",),
    "Skydio X2E": ("Skydio X2",),
}

_LOWER_KEYS: dict[str, str] = {k.lower(): k for k in MODEL_COMPATIBILITY_MAP}


def models_for_manufacturer(manufacturer: Optional[str]) -> list[str]:
    if not manufacturer:
        return []
    return list(EQUIPMENT_MODELS.get(str(manufacturer).strip(), ()))


def get_compatible_models(equipment_model: Optional[str]) -> list[str]:
    """Family tokens for ``equipment_model``.

    Exact table key first, then a case-insensitive key match, else the model
    string itself.
    """
    if not equipment_model:
        return []
    direct = MODEL_COMPATIBILITY_MAP.get(equipment_model)
    if direct is not None:
        return list(direct)
    key = _LOWER_KEYS.get(equipment_model.lower())
    if key is not None:
        return list(MODEL_COMPATIBILITY_MAP[key])
    return [equipment_model]


def _entries(raw: Any) -> list[str]:
    if isinstance(raw, str):
        return [raw]
    if not isinstance(raw, Iterable):
        return []
    return [str(x) for x in raw if x is not None]


def is_accessory_compatible(accessory_compatibility: Any, equipment_model: Any) -> bool:
    """True when an accessory declaring ``accessory_compatibility`` fits ``equipment_model``.

    No declared restriction or no known model means "compatible". Bad input
    fails open instead of raising.
    """
    try:
        entries = _entries(accessory_compatibility) if accessory_compatibility else []
        if not entries:
            return True
        if not equipment_model or not isinstance(equipment_model, str):
            return True

        families = [f.lower() for f in get_compatible_models(equipment_model)]
        for family in families:
            for entry in entries:
                acc = entry.lower()
                if family in acc or acc in family:
                    return True
        return False
    except Exception:
        return True
