"""Graphics snapshots of the pathing solver for debugging tools."""
import hashlib
from typing import TYPE_CHECKING, Any, Dict, List

if TYPE_CHECKING:
    from .pathing_solver import PortPointPathingSolver

FRONTIER_PREVIEW = 10


def get_string_color(value: str, alpha: float = 0.8) -> str:
    """Stable color for a name."""
    digest = hashlib.md5(value.encode("utf-8")).digest()
    return f"rgba({digest[0]}, {digest[1]}, {digest[2]}, {alpha})"


def visualize_pathing_solver(solver: 'PortPointPathingSolver') -> Dict[str, Any]:
    """Regions, ports, solved routes and the head of the candidate frontier.

    Reads solver state only.
    """
    rects: List[Dict[str, Any]] = []
    points: List[Dict[str, Any]] = []
    lines: List[Dict[str, Any]] = []

    for region in solver.regions:
        pf = solver.congestion_memory.get(region.region_id)
        if region.contains_obstacle:
            fill = "rgba(255, 0, 0, 0.2)"
        else:
            fill = f"rgba(255, 165, 0, {min(0.6, 0.05 + pf * 0.55):.3f})"
        rects.append({
            "center": (region.center.x, region.center.y),
            "width": region.width,
            "height": region.height,
            "fill": fill,
            "label": f"{region.region_id}\nmemory pf: {pf:.3f}",
        })

    for port in solver.ports:
        owner = port.assignment.connection.connection_id if port.assignment else None
        points.append({
            "x": port.x,
            "y": port.y,
            "color": get_string_color(owner) if owner else "rgba(128, 128, 128, 0.5)",
            "label": f"{port.port_id}\nz: {port.z}\nrips: {port.rip_count}",
        })

    for route in solver.solved_routes:
        connection = route.connection
        path_points = [(connection.start_region.center.x, connection.start_region.center.y)]
        path_points.extend((candidate.port.x, candidate.port.y) for candidate in route.path)
        path_points.append((connection.end_region.center.x, connection.end_region.center.y))
        lines.append({
            "points": path_points,
            "strokeColor": get_string_color(connection.connection_id),
            "label": connection.connection_id,
        })

    current = solver.current_connection
    if current is not None and not solver.solved:
        color = get_string_color(current.connection_id)
        start = current.start_region.center
        end = current.end_region.center
        lines.append({"points": [(start.x, start.y), (end.x, end.y)],
                      "strokeColor": color, "strokeDash": "10 5"})

        frontier = sorted(solver.candidate_queue)[:FRONTIER_PREVIEW]
        for index, (_, _, candidate) in enumerate(frontier):
            points.append({
                "x": candidate.port.x,
                "y": candidate.port.y,
                "color": "green" if index == 0 else "rgba(128, 128, 128, 0.55)",
                "label": f"{candidate.port.port_id}\ng: {candidate.g:.2f}\n"
                         f"h: {candidate.h:.2f}\nf: {candidate.f:.2f}",
            })
        if frontier:
            active = [(candidate.port.x, candidate.port.y) for candidate in frontier[0][2].get_path()]
            lines.append({"points": [(start.x, start.y)] + active, "strokeColor": color})

    return {
        "rects": rects,
        "points": points,
        "lines": lines,
        "title": f"{solver.get_solver_name()} iteration {solver.iterations}",
    }
