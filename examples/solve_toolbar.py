"""Example: find toolbar heights for a paper pinned to the top of each screen."""

from materialspace import build_store, conj, fresh, scene_from_dict, solve
from materialspace.layout import component_snap, screen, toolbar
from materialspace.relations import paper_dims, paper_pos

SCENE = {
    "devices": [
        {"id": "phone", "kind": "mobile", "screen": [360, 640, 10]},
        {"id": "monitor", "kind": "desktop", "screen": [1280, 800, 10]},
    ],
    "papers": [{"id": "bar"}],
}


def main() -> None:
    facts = build_store(scene_from_dict(SCENE))
    for device_id in ("phone", "monitor"):
        width, screen_h, screen_d, h, depth = fresh("width", "screen_h", "screen_d", "h", "depth")
        goal = conj(
            toolbar(device_id, "bar"),
            paper_pos("bar", 0, 0, 0),
            screen(device_id, width, screen_h, screen_d),
            paper_dims("bar", width, h, depth),
            component_snap(h),
        )
        answers = solve(facts, goal, 3, variables=(width, h))
        heights = [answer["h"] for answer in answers]
        print(f"{device_id}: {answers[0]['width']} wide, toolbar heights {heights}")


if __name__ == "__main__":
    main()
