"""
Static aircraft model catalog.

Two lookup tables drive type matching:
1. TYPE_CODE_TO_MODEL maps fine-grained ICAO type designators reported
   by the metadata feed (e.g. 'B738', 'A21N') onto canonical model keys.
2. AIRCRAFT_MODELS maps each model key onto its display name, the type
   codes it covers and a catalog group.

Watch lists are expressed in model keys.

Usage:
    from skyalert.ingestion.aircraft_db import type_code_to_model, model_name

    key = type_code_to_model('B38M')  # 'B737'
    print(model_name(key))            # 'Boeing 737'
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class AircraftModel:
    """A selectable aircraft model."""
    key: str
    name: str
    type_codes: Tuple[str, ...]
    group: str

    def to_dict(self) -> dict:
        return {
            'key': self.key,
            'name': self.name,
            'type_codes': list(self.type_codes),
            'group': self.group,
        }


# Catalog groups in display order
MODEL_GROUPS: Tuple[str, ...] = (
    'Boeing Commercial',
    'Airbus',
    'Embraer',
    'Bombardier',
    'ATR',
    'Classic Aircraft',
    'Business Jets',
    'General Aviation',
    'Cargo/Transport',
    'Military Transport',
    'Military Special Ops',
    'Military Combat',
    'Military Training',
    'Military Helicopters',
    'Civil Helicopters',
)


# (key, name, type codes) per group
_CATALOG: Dict[str, List[Tuple[str, str, Tuple[str, ...]]]] = {
    'Boeing Commercial': [
        ('B707', 'Boeing 707', ('B703', 'B707', 'B720')),
        ('B717', 'Boeing 717', ('B712', 'B717')),
        ('B727', 'Boeing 727', ('B721', 'B722', 'B727')),
        ('B737', 'Boeing 737', ('B731', 'B732', 'B733', 'B734', 'B735', 'B736', 'B737',
                                'B738', 'B739', 'B37M', 'B38M', 'B39M', 'B3XM')),
        ('B747', 'Boeing 747', ('B741', 'B742', 'B743', 'B744', 'B748', 'B74S', 'B74R', 'BLCF')),
        ('B757', 'Boeing 757', ('B752', 'B753')),
        ('B767', 'Boeing 767', ('B762', 'B763', 'B764')),
        ('B777', 'Boeing 777', ('B772', 'B773', 'B77L', 'B77W', 'B779', 'B77X')),
        ('B787', 'Boeing 787 Dreamliner', ('B788', 'B789', 'B78X')),
    ],
    'Airbus': [
        ('A220', 'Airbus A220', ('BCS1', 'BCS3', 'A221', 'A223')),
        ('A300', 'Airbus A300', ('A30B', 'A306', 'A3ST')),
        ('A310', 'Airbus A310', ('A310',)),
        ('A318', 'Airbus A318', ('A318',)),
        ('A319', 'Airbus A319', ('A319', 'A19N')),
        ('A320', 'Airbus A320', ('A320', 'A20N')),
        ('A321', 'Airbus A321', ('A321', 'A21N')),
        ('A330', 'Airbus A330', ('A332', 'A333', 'A338', 'A339')),
        ('A340', 'Airbus A340', ('A342', 'A343', 'A345', 'A346')),
        ('A350', 'Airbus A350', ('A359', 'A35K')),
        ('A380', 'Airbus A380', ('A388',)),
    ],
    'Embraer': [
        ('E120', 'Embraer EMB-120 Brasilia', ('E120',)),
        ('E135', 'Embraer ERJ-135', ('E135',)),
        ('E145', 'Embraer ERJ-145', ('E145',)),
        ('E170', 'Embraer E-Jet E170', ('E170',)),
        ('E175', 'Embraer E-Jet E175', ('E175',)),
        ('E190', 'Embraer E-Jet E190', ('E190',)),
        ('E195', 'Embraer E-Jet E195', ('E195',)),
        ('E290', 'Embraer E190-E2', ('E290',)),
        ('E295', 'Embraer E195-E2', ('E295',)),
    ],
    'Bombardier': [
        ('CRJ1', 'Bombardier CRJ100', ('CRJ1',)),
        ('CRJ2', 'Bombardier CRJ200', ('CRJ2',)),
        ('CRJ7', 'Bombardier CRJ700', ('CRJ7',)),
        ('CRJ9', 'Bombardier CRJ900', ('CRJ9',)),
        ('CRJX', 'Bombardier CRJ1000', ('CRJX',)),
        ('DH8A', 'Bombardier Dash 8-100', ('DH8A',)),
        ('DH8B', 'Bombardier Dash 8-200', ('DH8B',)),
        ('DH8C', 'Bombardier Dash 8-300', ('DH8C',)),
        ('DH8D', 'Bombardier Dash 8-400', ('DH8D',)),
    ],
    'ATR': [
        ('AT42', 'ATR 42', ('AT42',)),
        ('AT43', 'ATR 42-300', ('AT43',)),
        ('AT44', 'ATR 42-400', ('AT44',)),
        ('AT45', 'ATR 42-500', ('AT45',)),
        ('AT46', 'ATR 42-600', ('AT46',)),
        ('AT72', 'ATR 72', ('AT72',)),
        ('AT73', 'ATR 72-500', ('AT73',)),
        ('AT75', 'ATR 72-600', ('AT75',)),
    ],
    'Classic Aircraft': [
        ('F27', 'Fokker 27', ('F27',)),
        ('F28', 'Fokker 28', ('F28',)),
        ('F50', 'Fokker 50', ('F50',)),
        ('F70', 'Fokker 70', ('F70',)),
        ('F100', 'Fokker 100', ('F100',)),
        ('DC3', 'Douglas DC-3', ('DC3',)),
        ('DC6', 'Douglas DC-6', ('DC6',)),
        ('DC8', 'Douglas DC-8', ('DC81', 'DC82', 'DC83', 'DC86', 'DC87')),
        ('DC9', 'Douglas DC-9', ('DC91', 'DC92', 'DC93', 'DC94', 'DC95')),
        ('MD11', 'McDonnell Douglas MD-11', ('MD11',)),
        ('MD80', 'McDonnell Douglas MD-80', ('MD81', 'MD82', 'MD83', 'MD87', 'MD88')),
        ('MD90', 'McDonnell Douglas MD-90', ('MD90',)),
        ('L188', 'Lockheed Electra', ('L188',)),
        ('L1011', 'Lockheed L-1011 TriStar', ('L101',)),
    ],
    'Business Jets': [
        ('C25A', 'Cessna Citation CJ2', ('C25A',)),
        ('C25B', 'Cessna Citation CJ3', ('C25B',)),
        ('C25C', 'Cessna Citation CJ4', ('C25C',)),
        ('C510', 'Cessna Citation Mustang', ('C510',)),
        ('C525', 'Cessna Citation CJ1', ('C525',)),
        ('C550', 'Cessna Citation II', ('C550',)),
        ('C560', 'Cessna Citation V', ('C560',)),
        ('C680', 'Cessna Citation Sovereign', ('C680',)),
        ('C750', 'Cessna Citation X', ('C750',)),
        ('GLF4', 'Gulfstream IV', ('GLF4',)),
        ('GLF5', 'Gulfstream V', ('GLF5',)),
        ('GLF6', 'Gulfstream G650', ('GLF6',)),
        ('H25B', 'Hawker 800', ('H25B',)),
        ('LJ35', 'Learjet 35', ('LJ35',)),
        ('LJ45', 'Learjet 45', ('LJ45',)),
        ('LJ60', 'Learjet 60', ('LJ60',)),
    ],
    'General Aviation': [
        ('C172', 'Cessna 172', ('C172',)),
        ('C182', 'Cessna 182', ('C182',)),
        ('C206', 'Cessna 206', ('C206',)),
        ('C208', 'Cessna 208 Caravan', ('C208',)),
        ('PA28', 'Piper Cherokee', ('PA28',)),
        ('PA31', 'Piper Navajo', ('PA31',)),
        ('PA46', 'Piper Malibu', ('PA46',)),
        ('BE20', 'Beechcraft King Air', ('BE20',)),
        ('BE36', 'Beechcraft Bonanza', ('BE36',)),
        ('BE58', 'Beechcraft Baron', ('BE58',)),
    ],
    'Cargo/Transport': [
        ('AN12', 'Antonov An-12', ('AN12',)),
        ('AN22', 'Antonov An-22', ('AN22',)),
        ('AN24', 'Antonov An-24', ('AN24',)),
        ('AN26', 'Antonov An-26', ('AN26',)),
        ('AN28', 'Antonov An-28', ('AN28',)),
        ('AN32', 'Antonov An-32', ('AN32',)),
        ('AN124', 'Antonov An-124', ('A124',)),
        ('AN225', 'Antonov An-225 Mriya', ('A225',)),
        ('IL76', 'Ilyushin Il-76', ('IL76',)),
    ],
    'Military Transport': [
        ('A400M', 'Airbus A400M Atlas', ('A400',)),
        ('C130', 'Lockheed C-130 Hercules', ('C130', 'L382')),
        ('KC135', 'Boeing KC-135 Stratotanker', ('KC135',)),
        ('C17', 'Boeing C-17 Globemaster III', ('C17',)),
        ('C5', 'Lockheed C-5 Galaxy', ('C5',)),
        ('KC10', 'McDonnell Douglas KC-10 Extender', ('KC10',)),
        ('KC46', 'Boeing KC-46 Pegasus', ('KC46',)),
        ('C295', 'Airbus C295', ('C295',)),
        ('CN235', 'CASA CN-235', ('CN35',)),
        ('C212', 'CASA C-212 Aviocar', ('C212',)),
    ],
    'Military Special Ops': [
        ('V22', 'Bell Boeing V-22 Osprey', ('V22',)),
        ('MV22', 'MV-22 Osprey (Marines)', ('MV22',)),
        ('CV22', 'CV-22 Osprey (Air Force)', ('CV22',)),
        ('C27J', 'Alenia C-27J Spartan', ('C27J',)),
        ('P3', 'Lockheed P-3 Orion', ('P3',)),
        ('P8', 'Boeing P-8 Poseidon', ('P8',)),
        ('E3', 'Boeing E-3 Sentry AWACS', ('E3',)),
        ('E2', 'Northrop Grumman E-2 Hawkeye', ('E2',)),
        ('RC135', 'Boeing RC-135 Rivet Joint', ('RC35',)),
        ('U2', 'Lockheed U-2 Dragon Lady', ('U2',)),
    ],
    'Military Combat': [
        ('F16', 'General Dynamics F-16 Fighting Falcon', ('F16',)),
        ('F15', 'McDonnell Douglas F-15 Eagle', ('F15',)),
        ('F18', 'McDonnell Douglas F/A-18 Hornet', ('F18',)),
        ('F35', 'Lockheed Martin F-35 Lightning II', ('F35',)),
        ('A10', 'Fairchild Republic A-10 Thunderbolt II', ('A10',)),
        ('AV8B', 'McDonnell Douglas AV-8B Harrier II', ('AV8B',)),
    ],
    'Military Training': [
        ('T6', 'Beechcraft T-6 Texan II', ('T6',)),
        ('T38', 'Northrop T-38 Talon', ('T38',)),
        ('T45', 'McDonnell Douglas T-45 Goshawk', ('T45',)),
    ],
    'Military Helicopters': [
        ('UH60', 'Sikorsky UH-60 Black Hawk', ('UH60', 'H60')),
        ('CH47', 'Boeing CH-47 Chinook', ('CH47',)),
        ('AH64', 'Boeing AH-64 Apache', ('AH64',)),
        ('UH1', 'Bell UH-1 Iroquois (Huey)', ('UH1',)),
        ('CH53', 'Sikorsky CH-53 Sea Stallion', ('CH53',)),
        ('SH60', 'Sikorsky SH-60 Seahawk', ('SH60',)),
    ],
    'Civil Helicopters': [
        ('AS50', 'Airbus H125 (AS350)', ('AS50',)),
        ('AS55', 'Airbus H155 (AS365)', ('AS55',)),
        ('EC30', 'Airbus H130', ('EC30',)),
        ('EC35', 'Airbus H135', ('EC35',)),
        ('EC45', 'Airbus H145', ('EC45',)),
        ('B06', 'Bell 206', ('B06',)),
        ('B407', 'Bell 407', ('B407',)),
        ('B429', 'Bell 429', ('B429',)),
        ('R22', 'Robinson R22', ('R22',)),
        ('R44', 'Robinson R44', ('R44',)),
        ('R66', 'Robinson R66', ('R66',)),
    ],
}


AIRCRAFT_MODELS: Dict[str, AircraftModel] = {
    key: AircraftModel(key=key, name=name, type_codes=codes, group=group)
    for group, entries in _CATALOG.items()
    for key, name, codes in entries
}


# Type designator -> model key. Each designator belongs to exactly one model.
TYPE_CODE_TO_MODEL: Dict[str, str] = {
    code: model.key
    for model in AIRCRAFT_MODELS.values()
    for code in model.type_codes
}


def type_code_to_model(type_code: Optional[str]) -> Optional[str]:
    """
    Map an ICAO type designator onto its canonical model key.

    Returns None for empty or unrecognized codes.
    """
    if not type_code:
        return None
    return TYPE_CODE_TO_MODEL.get(type_code.strip().upper())


def get_model(key: Optional[str]) -> Optional[AircraftModel]:
    if not key:
        return None
    return AIRCRAFT_MODELS.get(key.strip().upper())


def model_name(key: Optional[str]) -> Optional[str]:
    """Display name for a model key, or None if unknown."""
    model = get_model(key)
    return model.name if model else None


def search_models(term: Optional[str]) -> List[AircraftModel]:
    """Case-insensitive search on model key or name. Empty term matches all."""
    term = (term or '').strip().lower()
    return [
        model for model in AIRCRAFT_MODELS.values()
        if not term or term in model.key.lower() or term in model.name.lower()
    ]


def models_by_group(models: Optional[List[AircraftModel]] = None) -> Dict[str, List[AircraftModel]]:
    """Group models in catalog order, omitting empty groups."""
    if models is None:
        models = list(AIRCRAFT_MODELS.values())

    grouped: Dict[str, List[AircraftModel]] = {}
    for group in MODEL_GROUPS:
        members = [m for m in models if m.group == group]
        if members:
            grouped[group] = members
    return grouped
