from . import build_store, conj, run, scene_from_dict
from .fd import Var
from .layout import axis, device, on_screen
from .relations import paper, paper_dims, paper_pos

DEMO = {
    "devices": [{"id": "mobile", "kind": "mobile", "pixel_depth": 1, "screen": [800, 600, 10]}],
    "papers": [{"id": "nav"}],
}


def query(p, x, y, z, w, h, pd):
    """Place some paper so that it sits entirely on the first device's screen."""

    d = Var("d")
    return conj(
        device(d, Var("kind")),
        axis(x, y, z),
        axis(w, h, pd),
        paper(p),
        paper_dims(p, w, h, pd),
        paper_pos(p, x, y, z),
        on_screen(d, p),
    )


def run_demo(n: int = 1):
    facts = build_store(scene_from_dict(DEMO))
    print(f"Facts: {facts}\n")
    answers = run(facts, n, query)
    print("Answers:")
    for answer in answers:
        print("  " + ", ".join(f"{name}={value}" for name, value in answer.items()))
    return answers


if __name__ == "__main__":
    run_demo()
