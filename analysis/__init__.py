"""Map rendering for the Outbreak Case Maps."""

from .map_cases import create_case_map, render_case_map, save_case_map

__all__ = ["create_case_map", "render_case_map", "save_case_map"]
