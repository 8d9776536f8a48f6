from __future__ import annotations

from functools import lru_cache

from workflows.diagnosis.v1.nodes.normalize import normalize_diagnosis
from workflows.diagnosis.v1.schemas.domain import AnalysisRequest, DiagnosisResult


DEMO_BOARD = "ESP32"
DEMO_GOAL = "ESP32 + OLED (SSD1306) display"
DEMO_ISSUE = "OLED stays blank; I2C scanner shows no devices."

_DEMO_PAYLOAD = {
    "title": "I2C bus not detected: check wiring and address",
    "confidence": "medium",
    "summary": (
        "The I2C scanner finds no devices, which usually points to SDA/SCL wiring, "
        "missing pull-ups, power, or an address mismatch."
    ),
    "likely_causes": [
        "SDA or SCL swapped or disconnected",
        "Missing I2C pull-up resistors (typically 4.7 kOhm on SDA and SCL)",
        "Wrong I2C address (SSD1306 is usually 0x3C or 0x3D)",
    ],
    "fix_steps": [
        {
            "step": 1,
            "action": "Verify SDA and SCL go to the ESP32 I2C pins (GPIO 21/22 by default)",
            "why": "Wrong pins mean no bus traffic.",
        },
        {
            "step": 2,
            "action": "Add 4.7 kOhm pull-ups from SDA and SCL to 3.3 V if the module has none",
            "why": "I2C lines are open-drain and need pull-ups.",
        },
        {
            "step": 3,
            "action": "Confirm OLED VCC/GND and try address 0x3C or 0x3D in code",
            "why": "Power or address mismatch prevents detection.",
        },
    ],
    "verification": ["Check power rail", "Confirm shared ground", "Scan I2C bus", "Verify pin map"],
    "explanation_beginner": (
        "I2C (a two-wire bus) lets your board talk to displays and sensors. If the scanner "
        "finds nothing, the wiring or power is usually the problem. Check the two data wires "
        "and make sure pull-up resistors are present."
    ),
    "explanation_advanced": (
        "ESP32 I2C defaults to GPIO 21 (SDA) and GPIO 22 (SCL). SSD1306 modules need ~4.7 kOhm "
        "pull-ups and answer at 0x3C or 0x3D. Verify continuity, 3.3 V supply and the address "
        "passed to the driver."
    ),
    "uncertainty_zones": [
        {
            "area": "Actual wiring",
            "reason": "Image or description may be incomplete",
            "how_to_verify": "Measure continuity from SDA/SCL to the ESP32 pins",
        }
    ],
    "intent_mismatch": [
        {
            "expected": "I2C SDA/SCL on correct pins with pull-ups",
            "observed": "No devices on bus",
            "impact": "OLED not detected",
        }
    ],
}


def is_demo_request(request: AnalysisRequest) -> bool:
    return (
        request.board_type == DEMO_BOARD
        and request.goal.strip() == DEMO_GOAL
        and request.issue_text.strip() == DEMO_ISSUE
    )


@lru_cache(maxsize=1)
def _demo_result() -> DiagnosisResult:
    normalized = normalize_diagnosis(_DEMO_PAYLOAD)
    if not normalized.ok:
        raise RuntimeError(f"Demo diagnosis is invalid: {normalized.errors}")
    return normalized.result


def demo_fallback_result() -> DiagnosisResult:
    return _demo_result().model_copy(deep=True)
