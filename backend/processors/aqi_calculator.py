"""
🧮 INDIA NAQI CATEGORIES
========================
Maps a CPCB AQI value to its National Air Quality Index category, display
color and health message.

CPCB bands (0-500 scale):
- Good (0-50)
- Satisfactory (51-100)
- Moderate (101-200)
- Poor (201-300)
- Very Poor (301-400)
- Severe (401+)
"""

from dataclasses import dataclass, asdict
from typing import Dict


@dataclass(frozen=True)
class AqiCategory:
    """NAQI band for a single AQI value"""
    level: str
    color: str
    text_color: str
    health_message: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


# Upper bound (inclusive) -> category
NAQI_CATEGORIES = [
    (50, AqiCategory('Good', '#009865', '#FFFFFF',
                     'Minimal impact. Enjoy outdoor activities.')),
    (100, AqiCategory('Satisfactory', '#A3C853', '#000000',
                      'Minor breathing discomfort to sensitive people.')),
    (200, AqiCategory('Moderate', '#FFF833', '#000000',
                      'Breathing discomfort to people with lung disease, asthma and heart disease. '
                      'Sensitive groups should limit prolonged outdoor exertion.')),
    (300, AqiCategory('Poor', '#F29C33', '#000000',
                      'Breathing discomfort to most people on prolonged exposure. '
                      'Reduce outdoor activities.')),
    (400, AqiCategory('Very Poor', '#E93F33', '#FFFFFF',
                      'Respiratory illness on prolonged exposure. Avoid outdoor activities.')),
]

SEVERE = AqiCategory('Severe', '#AF2D24', '#FFFFFF',
                     'Affects healthy people and seriously impacts those with existing diseases. '
                     'Remain indoors and keep activity levels low.')


def get_aqi_category(aqi: int) -> AqiCategory:
    """Get NAQI category from AQI value"""
    for upper, category in NAQI_CATEGORIES:
        if aqi <= upper:
            return category
    return SEVERE
