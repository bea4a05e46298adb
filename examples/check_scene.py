"""Example: load a scene, validate the forest and report exclusion problems."""

from pathlib import Path

from materialspace import build_store, check_exclusion, current_elevation, load_scene, validate_forest

SCENE_PATH = Path(__file__).with_name("cards.json")


def main() -> None:
    scene = load_scene(SCENE_PATH)
    facts = build_store(scene)
    roots = validate_forest(facts)
    print(f"Roots: {roots}")
    for spec in scene.papers:
        if spec.state is not None:
            print(f"  {spec.id}: elevation {current_elevation(facts, spec.id)}")
    violations = check_exclusion(facts)
    print("Violations:")
    for violation in violations or ["(none)"]:
        print(f"  - {violation}")


if __name__ == "__main__":
    main()
