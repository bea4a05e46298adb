import argparse
import logging
from typing import List, Optional, Sequence

from materialspace import (
    SearchOptions,
    build_store,
    check_exclusion,
    conj,
    fresh,
    load_scene,
    solve,
    validate_forest,
)
from materialspace.errors import MaterialSpaceError
from materialspace.hierarchy import absolute_pos
from materialspace.layout import on_screen, visible
from materialspace.relations import paper_dims

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _placements(facts, device_id: str, paper_id: str, n: int, options: SearchOptions) -> List[dict]:
    x, y, z, w, h, depth = fresh("x", "y", "z", "w", "h", "depth")
    goal = conj(
        on_screen(device_id, paper_id),
        absolute_pos(paper_id, x, y, z),
        paper_dims(paper_id, w, h, depth),
    )
    return solve(facts, goal, n, variables=(x, y, z, w, h), options=options)


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Check and solve material layout scenes")
    parser.add_argument("path", help="Path to the JSON scene file")
    parser.add_argument("--device", help="Device id used for visibility (default: first device)")
    parser.add_argument(
        "-n",
        "--count",
        type=int,
        default=1,
        help="Number of on-screen placements to print per paper (default: 1)",
    )
    parser.add_argument(
        "--node-budget",
        type=int,
        default=SearchOptions().node_budget,
        help="Maximum number of search nodes per query",
    )
    parser.add_argument(
        "--no-exclusion",
        action="store_true",
        help="Do not require scene-wide material exclusion in answers",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    try:
        scene = load_scene(args.path)
        facts = build_store(scene)
        validate_forest(facts)
    except MaterialSpaceError as exc:
        logger.error("Cannot load scene: %s", exc)
        raise SystemExit(1) from exc

    if not scene.devices:
        logger.error("Scene declares no devices")
        raise SystemExit(1)
    device_id = args.device or scene.devices[0].id
    if device_id not in {item.id for item in scene.devices}:
        logger.error("Unknown device %r", device_id)
        raise SystemExit(1)

    options = SearchOptions(node_budget=args.node_budget, enforce_exclusion=not args.no_exclusion)
    try:
        violations = check_exclusion(facts, options=options)
    except MaterialSpaceError as exc:
        logger.error("Exclusion check failed: %s", exc)
        raise SystemExit(1) from exc
    print("Exclusion:")
    if violations:
        for violation in violations:
            print(f"  - {violation}")
    else:
        print("  (none)")

    print(f"Placements on {device_id}:")
    for spec in scene.papers:
        try:
            answers = _placements(facts, device_id, spec.id, args.count, options)
            seen = bool(solve(facts, visible(device_id, spec.id), 1, options=options))
        except MaterialSpaceError as exc:
            logger.error("Query for %s failed: %s", spec.id, exc)
            raise SystemExit(1) from exc
        if not answers:
            print(f"  {spec.id}: not on screen (visible: {'yes' if seen else 'no'})")
            continue
        for answer in answers:
            print(
                f"  {spec.id}: at ({answer['x']}, {answer['y']}, {answer['z']})"
                f" size {answer['w']}x{answer['h']}"
            )


if __name__ == "__main__":
    main()
