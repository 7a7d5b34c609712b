"""
Logging for SheetNest.
Console logging setup plus a per-project layout report written next to the output.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional


def setup_logging(log_level: int = logging.INFO) -> None:
    """Setup basic logging configuration."""
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )


def log_layout(log_path: Path, project_name: str, timestamp: datetime,
               sheet_width: float, sheet_height: float, padding: float,
               num_layers: int, efficiency: int, wasted_area: float,
               duplicates_added: int, coverage: Optional[int],
               oversized_ids: List[str], output_path: Path, dpi: int,
               process_time: float, error: Optional[str] = None) -> None:
    """
    Write a layout report for one rendered sheet.

    Args:
        log_path: Path to log file
        project_name: Name of the project
        timestamp: Start timestamp
        sheet_width: Sheet width in inches
        sheet_height: Sheet height in inches
        padding: Padding in inches
        num_layers: Number of layers nested
        efficiency: Auto-nest efficiency percent
        wasted_area: Sheet area not covered by layers, square inches
        duplicates_added: Smart-fill duplicates rendered
        coverage: Smart-fill coverage percent, None if smart-fill was not run
        oversized_ids: Layers too large for the sheet
        output_path: Path to output TIFF
        dpi: Output resolution
        process_time: Rendering time in seconds
        error: Error message if any
    """
    report = f"""SheetNest - Layout Report
{'=' * 50}

Project:
    Name: {project_name}
    Started: {timestamp.strftime('%Y-%m-%d %H:%M:%S')}

Sheet:
    Size: {sheet_width} x {sheet_height} in
    Padding: {padding} in
    Output DPI: {dpi}

Auto-Nest:
    Layers: {num_layers}
    Efficiency: {efficiency}%
    Wasted Area: {wasted_area:.2f} sq in
    Oversized: {', '.join(oversized_ids) if oversized_ids else 'none'}

Smart Fill:
    Duplicates Added: {duplicates_added}
    Coverage: {f'{coverage}%' if coverage is not None else 'not run'}

Output:
    File: {output_path.name}
    Render Time: {process_time:.2f} seconds
    Completed: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}

"""

    if error:
        report += f"""Error:
    {error}
    Status: FAILED
"""
    else:
        status = "WARNING (oversized layers overlap)" if oversized_ids else "SUCCESS"
        report += f"Status: {status}\n"

    try:
        with open(log_path, 'w', encoding='utf-8') as f:
            f.write(report)
    except OSError as e:
        logger = logging.getLogger(__name__)
        logger.error(f"Failed to write log file {log_path}: {e}")


def generate_log_filename(project_name: str) -> str:
    """Timestamped log filename for a project."""
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    return f"{project_name}_{timestamp}_layout.log"


def generate_tiff_filename(project_name: str, preview: bool = False) -> str:
    """Timestamped TIFF filename for a project."""
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    suffix = 'preview' if preview else 'print'
    return f"{project_name}_{timestamp}_{suffix}.tif"
