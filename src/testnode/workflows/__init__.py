"""Deployment sub-workflows run by the init pipeline."""

from .anytrust import setup_anytrust
from .cleanup import cleanup_existing_state
from .images import build_or_fetch_images
from .l1 import setup_l1
from .l2_config import configure_l2_nodes
from .l2_deploy import deploy_l2
from .l3 import deploy_l3
from .prysm import setup_prysm
from .timeboost import setup_timeboost
from .traffic import has_traffic, start_traffic_generators

__all__ = [
	"build_or_fetch_images",
	"cleanup_existing_state",
	"configure_l2_nodes",
	"deploy_l2",
	"deploy_l3",
	"has_traffic",
	"setup_anytrust",
	"setup_l1",
	"setup_prysm",
	"setup_timeboost",
	"start_traffic_generators",
]
