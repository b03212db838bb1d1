#!/usr/bin/env python3
"""
📰 CPCB FEED PARSER
===================
Flattens the CPCB CAAQMS feed (AqIndex/Country/State/City/Station) into
station records.

The feed encoder writes a lone child as a bare element and repeated children
as a list, so every level goes through ``as_list`` before iteration. Nothing
above this module ever sees that ambiguity.

Stations whose latitude, longitude or AQI fail to parse are kept (with None in
those fields) so exact state/city/station lookups still find them.
"""

import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from utils.errors import MalformedFeed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StationRecord:
    """One monitoring station from a single feed snapshot"""
    station_id: str
    state_id: str
    city_id: str
    latitude: Optional[float]
    longitude: Optional[float]
    aqi_value: Optional[int]
    last_update: Optional[str] = None
    predominant_parameter: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.state_id, self.city_id, self.station_id)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def has_aqi(self) -> bool:
        return self.aqi_value is not None

    @property
    def is_incomplete(self) -> bool:
        return not (self.has_coordinates and self.has_aqi)


@dataclass(frozen=True)
class FeedSnapshot:
    """Parsed feed plus the time it was fetched (epoch seconds)"""
    stations: Tuple[StationRecord, ...]
    fetched_at: float


def as_list(value: Any) -> List[Any]:
    """Wrap a lone child into a one-element list; None becomes empty"""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _element_to_dict(element: ET.Element) -> Dict[str, Any]:
    node: Dict[str, Any] = dict(element.attrib)
    for child in element:
        value = _element_to_dict(child)
        if child.tag in node:
            existing = node[child.tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[child.tag] = [existing, value]
        else:
            node[child.tag] = value
    text = (element.text or '').strip()
    if text and '#text' not in node:
        node['#text'] = text
    return node


def xml_to_document(xml_text: str) -> Dict[str, Any]:
    """
    Convert the raw feed XML into nested dicts keyed by tag and attribute name

    A tag seen once under a parent maps to a dict; a repeated tag maps to a list.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise MalformedFeed(f"Feed is not valid XML: {e}")
    return {root.tag: _element_to_dict(root)}


def _parse_float(value: Any) -> Optional[float]:
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _parse_aqi(value: Any) -> Optional[int]:
    """Integer AQI from feed text ("180" -> 180, "180.7" -> 180, "NA" -> None)"""
    number = _parse_float(value)
    if number is None:
        return None
    return int(number)


def _aqi_node(station: Dict[str, Any]) -> Dict[str, Any]:
    nodes = as_list(station.get('Air_Quality_Index'))
    node = nodes[0] if nodes else {}
    return node if isinstance(node, dict) else {'Value': node}


def _states(document: Dict[str, Any]) -> List[Dict[str, Any]]:
    root = document.get('AqIndex') if isinstance(document, dict) else None
    if not isinstance(root, dict):
        raise MalformedFeed("Invalid data structure from AQI feed: missing AqIndex")

    states: List[Dict[str, Any]] = []
    found = False
    for country in as_list(root.get('Country')):
        if isinstance(country, dict) and 'State' in country:
            found = True
            states.extend(as_list(country['State']))
    if not found:
        raise MalformedFeed("Invalid data structure from AQI feed: missing AqIndex.Country.State")
    return states


def parse_feed(document: Dict[str, Any]) -> List[StationRecord]:
    """
    Flatten a feed document into station records in feed order

    Args:
        document: Nested mapping as produced by ``xml_to_document``

    Returns:
        Station records tagged with their owning state and city ids

    Raises:
        MalformedFeed: when the top-level state collection is absent
    """
    records: List[StationRecord] = []
    skipped = 0

    for state in _states(document):
        if not isinstance(state, dict):
            continue
        state_id = state.get('id', '')
        for city in as_list(state.get('City')):
            if not isinstance(city, dict):
                continue
            city_id = city.get('id', '')
            for station in as_list(city.get('Station')):
                if not isinstance(station, dict) or not station.get('id'):
                    skipped += 1
                    continue
                aqi_node = _aqi_node(station)
                records.append(StationRecord(
                    station_id=station['id'],
                    state_id=state_id,
                    city_id=city_id,
                    latitude=_parse_float(station.get('latitude')),
                    longitude=_parse_float(station.get('longitude')),
                    aqi_value=_parse_aqi(aqi_node.get('Value')),
                    last_update=station.get('lastupdate'),
                    predominant_parameter=aqi_node.get('Predominant_Parameter'),
                ))

    if skipped:
        logger.debug(f"Skipped {skipped} station nodes without an id")

    incomplete = sum(1 for record in records if record.is_incomplete)
    logger.info(f"✅ Parsed {len(records)} stations ({incomplete} incomplete)")
    return records
