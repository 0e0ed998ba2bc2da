"""
Shared constants and static catalogs for the Apitherapy Care backend.
"""

from typing import Dict, Optional

from ..domain.entities.protocol import Protocol, TreatmentPoint

# Anatomical sting points on the body model (position is model space x, y, z)
TREATMENT_POINTS = [
    TreatmentPoint("gv14", "GV14 (Dazhui)", (0.0, 1.5, -0.1), "Main point for immune regulation"),
    TreatmentPoint("li4_l", "LI4 Left (Hegu)", (0.6, 0.4, 0.1), "Face and upper body relief"),
    TreatmentPoint("li4_r", "LI4 Right (Hegu)", (-0.6, 0.4, 0.1), "Face and upper body relief"),
    TreatmentPoint("st36_l", "ST36 Left (Zusanli)", (0.3, -0.8, 0.2), "Vital energy and leg joints"),
    TreatmentPoint("st36_r", "ST36 Right (Zusanli)", (-0.3, -0.8, 0.2), "Vital energy and leg joints"),
    TreatmentPoint("bl23_l", "BL23 Left (Shenshu)", (0.2, 0.6, -0.2), "Lower back and kidney support"),
    TreatmentPoint("bl23_r", "BL23 Right (Shenshu)", (-0.2, 0.6, -0.2), "Lower back and kidney support"),
    TreatmentPoint("gb30_l", "GB30 Left (Huantiao)", (0.4, 0.0, -0.1), "Hip joint and sciatica"),
    TreatmentPoint("gb30_r", "GB30 Right (Huantiao)", (-0.4, 0.0, -0.1), "Hip joint and sciatica"),
    TreatmentPoint("c7", "C7 Vertebra", (0.0, 1.4, -0.15), "Cervical pain and inflammation"),
    TreatmentPoint("l4", "L4 Vertebra", (0.0, 0.3, -0.2), "Lumbar support"),
]

PROTOCOLS = [
    Protocol(
        id="p1",
        name="Arthritis Relief Protocol",
        description="Focuses on peripheral joints and local inflammation reduction.",
        recommended_points=("st36_l", "st36_r", "li4_l", "li4_r"),
    ),
    Protocol(
        id="p2",
        name="Immune Modulation Protocol",
        description="Systemic support for autoimmune conditions or chronic fatigue.",
        recommended_points=("gv14", "bl23_l", "bl23_r"),
    ),
    Protocol(
        id="p3",
        name="Chronic Back Pain Protocol",
        description="Focuses on spinal alignment points and lumbar relief.",
        recommended_points=("bl23_l", "bl23_r", "l4", "c7"),
    ),
]

DEFAULT_PROTOCOL_ID = "p2"

# Condition keywords used by the fallback recommender, checked in order
PROTOCOL_KEYWORDS = [
    ("p1", ("arthritis", "joint", "rheumat", "knee", "osteo")),
    ("p3", ("back", "spine", "spinal", "lumbar", "sciatica", "disc")),
    ("p2", ("immune", "autoimmune", "fatigue", "sclerosis", "lupus", "ms")),
]

EXPORT_FILE_PREFIX = "apitherapy-dump-"
SUMMARY_REFERENCE_PREFIX = "ATP-"

_POINTS_BY_ID: Dict[str, TreatmentPoint] = {p.id: p for p in TREATMENT_POINTS}
_PROTOCOLS_BY_ID: Dict[str, Protocol] = {p.id: p for p in PROTOCOLS}


def find_point(point_id: str) -> Optional[TreatmentPoint]:
    return _POINTS_BY_ID.get(point_id)


def find_protocol(protocol_id: str) -> Optional[Protocol]:
    return _PROTOCOLS_BY_ID.get(protocol_id)
