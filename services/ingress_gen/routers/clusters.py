from pathlib import Path

import constants
from config_generator import ConfigGenerator
from fastapi import APIRouter, HTTPException
from models import BackendDescriptor
from naming import clustername

router = APIRouter()


def _load_generator() -> ConfigGenerator:
    """Load a fresh generator for this request; names are never cached."""
    config_path = Path(constants.INGRESS_BACKENDS_PATH)
    if not config_path.exists():
        raise HTTPException(404, f"Backends file not found: {config_path}")

    generator = ConfigGenerator(str(config_path))
    if not generator.load_config():
        raise HTTPException(422, f"Backends file could not be parsed: {config_path}")
    return generator


@router.get("/clusters")
def list_clusters():
    """List the cluster name generated for every configured backend."""
    generator = _load_generator()
    return {"clusters": generator.get_cluster_names()}


@router.post("/clusters/name")
def cluster_name(backend: BackendDescriptor):
    """Compute the cluster name for a single backend."""
    return {"name": clustername(backend)}


@router.get("/config/envoy")
def get_envoy_config():
    """Get the Envoy config that would be generated from the backends file."""
    generator = _load_generator()
    return {"config": generator.generate_envoy_config(), "path": str(generator.config_path)}
