"""Stateless measurement endpoint: polygons in, measurements and labels out."""

import logging

from fastapi import APIRouter, HTTPException

from roofmap.config import settings
from roofmap.core.errors import InvalidGeometry
from roofmap.core.geometry.geomath import Position
from roofmap.core.geometry.roof import RoofPolygon
from roofmap.core.measurement.labels import LabelGenerator, to_feature_collection
from roofmap.core.measurement.store import MeasurementStore
from roofmap.models.schemas import MeasureRequest, MeasureResponse
from roofmap.utils.units import VALID_UNITS

logger = logging.getLogger(__name__)

router = APIRouter(tags=["measure"])


@router.post("/measure", response_model=MeasureResponse)
async def measure(req: MeasureRequest):
    """Measure polygons and generate their edge and area labels."""
    if req.unit not in VALID_UNITS:
        raise HTTPException(422, detail=[{"message": f"Unknown unit '{req.unit}'"}])

    polygons = [
        RoofPolygon(id=p.id, ring=[Position(*c) for c in p.ring])
        for p in req.polygons
    ]
    store = MeasurementStore(epsilon=settings.measurement_epsilon)
    measurements = store.reconcile(polygons)

    labels = LabelGenerator(
        min_length_m=settings.min_label_length_m,
        unit=req.unit,
        rotate=req.rotate_labels,
    )
    edge_labels, area_labels = [], []
    for polygon in polygons:
        if polygon.id not in store:
            continue
        edge_labels.extend(labels.edge_labels(polygon.ring))
        try:
            area_labels.append(labels.area_label(polygon.ring))
        except InvalidGeometry as e:
            logger.warning("No area label for %s: %s", polygon.id, e)

    return {
        "measurements": [m.to_dict() for m in measurements],
        "skipped": [p.id for p in polygons if p.id not in store],
        "edge_labels": to_feature_collection(edge_labels),
        "area_labels": to_feature_collection(area_labels),
    }
