"""
fuelops_services.mock_data -- Sample backend payloads for mock mode.

Every provider returns a fresh deep copy in the backend's camelCase wire
shape, so callers can mutate the result freely.
"""

from __future__ import annotations

import copy
from typing import Any

STATIONS: dict[str, str] = {
    "accra-central": "KTC Accra Central",
    "kumasi-highway": "KTC Kumasi Highway",
    "takoradi-port": "KTC Takoradi Port",
    "cape-coast": "KTC Cape Coast",
    "tema-industrial": "KTC Tema Industrial",
}

REJECTION_REASONS: dict[str, str] = {
    "incomplete-data": "Incomplete Data",
    "calculation-error": "Calculation Error",
    "missing-documentation": "Missing Documentation",
    "policy-violation": "Policy Violation",
    "other": "Other",
}

_SALES_ENTRIES: list[dict[str, Any]] = [
    {
        "id": "DS-001",
        "date": "2024-12-15",
        "product": "Super",
        "openSL": 8500,
        "supply": 15000,
        "overageShortageL": 0,
        "availableL": 23500,
        "closingSL": 6200,
        "checkL": 17300,
        "openSR": 125680,
        "closingSR": 143280,
        "returnTT": 300,
        "salesL": 17300,
        "differenceL": 0,
        "rate": 15.85,
        "value": 274205,
        "creditSales": 14000,
        "cashSales": 260205,
        "advances": 5000,
        "shortageMomo": 2000,
        "cashAvailable": 253205,
        "repaymentShortageMomo": 1500,
        "repaymentAdvances": 3000,
        "receivedFromDebtors": 8000,
        "cashToBank": 265705,
        "bankLodgement": 265000,
        "stationId": "accra-central",
        "stationName": "KTC Accra Central",
        "enteredBy": "Samuel Osei",
        "enteredAt": "2024-12-15T18:30:00+00:00",
        "status": "SUBMITTED",
        "notes": "Normal operations. Slight variance in bank lodgement due to change shortage.",
    },
    {
        "id": "DS-002",
        "date": "2024-12-14",
        "product": "Diesel",
        "openSL": 12800,
        "supply": 12000,
        "overageShortageL": -50,
        "availableL": 24750,
        "closingSL": 8500,
        "checkL": 16250,
        "openSR": 98450,
        "closingSR": 114700,
        "returnTT": 0,
        "salesL": 16250,
        "differenceL": 0,
        "rate": 17.20,
        "value": 279500,
        "creditSales": 14000,
        "cashSales": 265500,
        "advances": 3500,
        "shortageMomo": 1000,
        "cashAvailable": 261000,
        "repaymentShortageMomo": 800,
        "repaymentAdvances": 2000,
        "receivedFromDebtors": 5500,
        "cashToBank": 269300,
        "bankLodgement": 269300,
        "stationId": "accra-central",
        "stationName": "KTC Accra Central",
        "enteredBy": "Samuel Osei",
        "enteredAt": "2024-12-14T19:15:00+00:00",
        "status": "VALIDATED",
        "validatedBy": "Mary Asante",
        "validatedAt": "2024-12-15T08:30:00+00:00",
    },
    {
        "id": "DS-101",
        "date": "2024-12-15",
        "product": "Regular",
        "openSL": 11800,
        "supply": 0,
        "overageShortageL": 0,
        "availableL": 11800,
        "closingSL": 6900,
        "checkL": 4900,
        "openSR": 98450,
        "closingSR": 103350,
        "returnTT": 0,
        "salesL": 4900,
        "differenceL": 0,
        "rate": 15.45,
        "value": 75705,
        "creditSales": 5000,
        "cashSales": 70705,
        "advances": 0,
        "shortageMomo": 0,
        "cashAvailable": 70705,
        "repaymentShortageMomo": 0,
        "repaymentAdvances": 0,
        "receivedFromDebtors": 0,
        "cashToBank": 70705,
        "bankLodgement": 70705,
        "stationId": "kumasi-highway",
        "stationName": "KTC Kumasi Highway",
        "enteredBy": "Kwame Boateng",
        "enteredAt": "2024-12-15T19:05:00+00:00",
        "status": "APPROVED",
        "validatedBy": "Mary Asante",
        "validatedAt": "2024-12-16T08:10:00+00:00",
        "approvedBy": "Dr. Emmanuel Asante",
        "approvedAt": "2024-12-16T11:45:00+00:00",
    },
]

_PRICE_CHANGES: list[dict[str, Any]] = [
    {
        "id": "1",
        "tankId": "1",
        "tankName": "Tank A - Super",
        "station": "KTC Accra Central",
        "fuelType": "Super",
        "currentPrice": 8.45,
        "newPrice": 8.75,
        "priceDifference": 0.30,
        "percentageChange": 3.55,
        "effectiveDate": "2024-12-16T06:00:00+00:00",
        "reason": "Global crude oil price increase. Market rate adjustment required to maintain margins.",
        "requestedBy": "Samuel Osei",
        "requestedAt": "2024-12-15T14:30:00+00:00",
        "status": "PENDING",
        "priority": "HIGH",
        "category": "MARKET_ADJUSTMENT",
    },
    {
        "id": "2",
        "tankId": "8",
        "tankName": "Tank B - Diesel",
        "station": "KTC Kumasi Highway",
        "fuelType": "Diesel",
        "currentPrice": 9.20,
        "newPrice": 8.95,
        "priceDifference": -0.25,
        "percentageChange": -2.72,
        "effectiveDate": "2024-12-16T10:00:00+00:00",
        "reason": "Supplier cost reduction due to bulk purchasing agreement.",
        "requestedBy": "Mary Asante",
        "requestedAt": "2024-12-15T16:45:00+00:00",
        "status": "PENDING",
        "priority": "MEDIUM",
        "category": "COST_INCREASE",
    },
    {
        "id": "10",
        "tankId": "5",
        "tankName": "Tank A - Regular",
        "station": "KTC Cape Coast",
        "fuelType": "Regular",
        "currentPrice": 7.90,
        "newPrice": 8.15,
        "priceDifference": 0.25,
        "percentageChange": 3.16,
        "effectiveDate": "2024-12-14T06:00:00+00:00",
        "reason": "Weekly market rate adjustment based on crude oil price fluctuations.",
        "requestedBy": "Samuel Osei",
        "requestedAt": "2024-12-13T15:20:00+00:00",
        "status": "APPROVED",
        "approvedBy": "Dr. Emmanuel Asante",
        "approvedAt": "2024-12-14T05:30:00+00:00",
        "approvalReason": "Approved based on market analysis.",
        "priority": "HIGH",
        "category": "MARKET_ADJUSTMENT",
    },
]

_SUPPLIES: list[dict[str, Any]] = [
    {
        "id": "PS-001",
        "date": "2024-12-15",
        "product": "Super",
        "qty": 15000,
        "rate": 15.85,
        "mstatus": "PENDING",
        "stationId": "accra-central",
        "stationName": "KTC Accra Central",
        "fromStationId": "tema-industrial",
        "fromStationName": "KTC Tema Industrial",
        "createdBy": "Samuel Osei",
        "priority": "HIGH",
    },
    {
        "id": "PS-002",
        "date": "2024-12-14",
        "product": "Diesel",
        "qty": 12000,
        "qtyR": 11950,
        "rate": 17.20,
        "shortage": 50,
        "mstatus": "RECEIVED",
        "stationId": "accra-central",
        "stationName": "KTC Accra Central",
        "fromStationId": "kumasi-highway",
        "fromStationName": "KTC Kumasi Highway",
        "createdBy": "Mary Asante",
        "confirmedBy": "Samuel Osei",
        "confirmedAt": "2024-12-14T14:30:00+00:00",
        "receivedAt": "2024-12-14T14:30:00+00:00",
        "priority": "MEDIUM",
    },
    {
        "id": "PS-003",
        "date": "2024-12-16",
        "product": "Regular",
        "qty": 8000,
        "rate": 15.45,
        "mstatus": "APPROVED",
        "stationId": "accra-central",
        "stationName": "KTC Accra Central",
        "fromStationId": "cape-coast",
        "fromStationName": "KTC Cape Coast",
        "createdBy": "Kwame Boateng",
        "priority": "LOW",
    },
]

_UTILITY_BILLS: list[dict[str, Any]] = [
    {
        "id": "1",
        "dueDate": "Feb 14, 2025",
        "utility": "Electricity",
        "provider": "Electricity Company of Ghana (ECG)",
        "billNumber": "ECG-2025-001",
        "period": "Dec 14, 2024 - Jan 14, 2025",
        "amount": 2640.00,
        "status": "Pending",
        "priority": "High",
        "stationId": "accra-central",
        "stationName": "KTC Accra Central",
        "createdBy": "Samuel Osei",
    },
    {
        "id": "2",
        "dueDate": "Feb 9, 2025",
        "utility": "Water",
        "provider": "Ghana Water Company Limited (GWCL)",
        "billNumber": "GWCL-2025-002",
        "period": "Dec 9, 2024 - Jan 9, 2025",
        "amount": 495.00,
        "status": "Overdue",
        "priority": "Medium",
        "stationId": "accra-central",
        "stationName": "KTC Accra Central",
        "createdBy": "Mary Asante",
    },
]


def sales_entries(station_id: str | None = None) -> list[dict[str, Any]]:
    """Mock entries, optionally for one station."""
    return [
        copy.deepcopy(e)
        for e in _SALES_ENTRIES
        if station_id is None or e["stationId"] == station_id
    ]


def price_changes(status: str | None = None) -> list[dict[str, Any]]:
    return [
        copy.deepcopy(p)
        for p in _PRICE_CHANGES
        if status is None or p["status"] == status
    ]


def price_change_history() -> list[dict[str, Any]]:
    return [copy.deepcopy(p) for p in _PRICE_CHANGES if p["status"] != "PENDING"]


def supplies(station_id: str | None = None) -> list[dict[str, Any]]:
    return [
        copy.deepcopy(s)
        for s in _SUPPLIES
        if station_id is None or s["stationId"] == station_id
    ]


def utility_bills(station_id: str | None = None) -> list[dict[str, Any]]:
    return [
        copy.deepcopy(b)
        for b in _UTILITY_BILLS
        if station_id is None or b["stationId"] == station_id
    ]
