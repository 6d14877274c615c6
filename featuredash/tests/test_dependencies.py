import unittest

from featuredash.dependencies import (
    build_dependency_map,
    build_name_to_path_map,
    describe_dependencies,
    detect_alerts,
    feature_dependency_alerts,
    group_dependencies,
    unique_dependency_count,
)
from featuredash.models import Dependency, DependencyAlert, DependencyType, Feature, GroupedDependency


def _dep(target: str, target_file: str = "src/target/index.ts", dep_type: str = "sibling", line: int = 1) -> Dependency:
    return Dependency(
        sourceFilename="src/source/index.ts",
        targetFilename=target_file,
        line=line,
        content=f"import {{ x }} from '{target_file}'",
        featurePath=target,
        type=dep_type,
    )


def _group(count: int, file_count: int, target: str = "target") -> GroupedDependency:
    items = [_dep(target, target_file=f"src/target/file-{i % file_count}.ts", line=i + 1) for i in range(count)]
    return GroupedDependency(feature=target, type=DependencyType.SIBLING, count=count, items=items)


class GraphBuilderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.features = [
            Feature(
                name="app",
                path="src/app",
                dependencies=[_dep("auth"), _dep("ghost")],
                features=[
                    Feature(name="auth", path="src/app/auth", dependencies=[_dep("app", dep_type="parent")]),
                ],
            ),
            Feature(name="billing", path="src/billing"),
        ]

    def test_name_to_path_covers_nested_features(self) -> None:
        self.assertEqual(
            build_name_to_path_map(self.features),
            {"app": "src/app", "auth": "src/app/auth", "billing": "src/billing"},
        )

    def test_dependency_map_uses_paths_and_drops_unknown_names(self) -> None:
        dependency_map = build_dependency_map(self.features)
        self.assertEqual(dependency_map["src/app"], {"src/app/auth"})
        self.assertEqual(dependency_map["src/app/auth"], {"src/app"})
        self.assertEqual(dependency_map["src/billing"], set())

    def test_dependency_may_name_target_with_feature_key(self) -> None:
        dep = Dependency.model_validate(
            {"sourceFilename": "a.ts", "targetFilename": "b.ts", "line": 3, "content": "", "feature": "billing", "type": "sibling"}
        )
        features = [Feature(name="app", path="src/app", dependencies=[dep]), Feature(name="billing", path="src/billing")]
        self.assertEqual(build_dependency_map(features)["src/app"], {"src/billing"})


class GroupDependenciesTests(unittest.TestCase):
    def test_groups_by_target_and_relation(self) -> None:
        deps = [
            _dep("auth", line=1),
            _dep("auth", line=2),
            _dep("auth", dep_type="child", line=3),
            _dep("billing", line=4),
        ]
        groups = {(group.feature, group.type.value): group for group in group_dependencies(deps)}

        self.assertEqual(set(groups), {("auth", "sibling"), ("auth", "child"), ("billing", "sibling")})
        self.assertEqual(groups[("auth", "sibling")].count, 2)
        self.assertEqual([item.line for item in groups[("auth", "sibling")].items], [1, 2])
        self.assertEqual(groups[("auth", "child")].count, 1)

    def test_empty_input(self) -> None:
        self.assertEqual(group_dependencies([]), [])


class TightDependencyTests(unittest.TestCase):
    def _alerts(self, group: GroupedDependency) -> list[DependencyAlert]:
        return detect_alerts(group, "src/source", {}, {})

    def test_single_file_threshold(self) -> None:
        self.assertIn(DependencyAlert.TIGHT, self._alerts(_group(count=6, file_count=1)))
        self.assertNotIn(DependencyAlert.TIGHT, self._alerts(_group(count=5, file_count=1)))

    def test_three_or_more_files_threshold(self) -> None:
        self.assertIn(DependencyAlert.TIGHT, self._alerts(_group(count=4, file_count=3)))
        self.assertNotIn(DependencyAlert.TIGHT, self._alerts(_group(count=3, file_count=3)))
        self.assertIn(DependencyAlert.TIGHT, self._alerts(_group(count=8, file_count=4)))

    def test_two_files_never_tight(self) -> None:
        self.assertEqual(self._alerts(_group(count=20, file_count=2)), [])

    def test_alert_labels(self) -> None:
        self.assertEqual(DependencyAlert.TIGHT.value, "Tight Dependency")
        self.assertEqual(DependencyAlert.CIRCULAR.value, "Circular Dependency")


class CircularDependencyTests(unittest.TestCase):
    def _alerts_for(self, features: list[Feature], source: Feature) -> list[list[DependencyAlert]]:
        dependency_map = build_dependency_map(features)
        name_to_path = build_name_to_path_map(features)
        return [
            detect_alerts(group, source.path, dependency_map, name_to_path)
            for group in group_dependencies(source.dependencies)
        ]

    def test_direct_pair_is_reported_on_both_sides(self) -> None:
        a = Feature(name="a", path="src/a", dependencies=[_dep("b")])
        b = Feature(name="b", path="src/b", dependencies=[_dep("a")])
        features = [a, b]

        self.assertEqual(self._alerts_for(features, a), [[DependencyAlert.CIRCULAR]])
        self.assertEqual(self._alerts_for(features, b), [[DependencyAlert.CIRCULAR]])

    def test_one_way_dependency_has_no_alert(self) -> None:
        a = Feature(name="a", path="src/a", dependencies=[_dep("b")])
        b = Feature(name="b", path="src/b")
        self.assertEqual(self._alerts_for([a, b], a), [[]])

    def test_longer_cycles_are_not_reported(self) -> None:
        a = Feature(name="a", path="src/a", dependencies=[_dep("b")])
        b = Feature(name="b", path="src/b", dependencies=[_dep("c")])
        c = Feature(name="c", path="src/c", dependencies=[_dep("a")])
        features = [a, b, c]
        for feature in features:
            self.assertEqual(self._alerts_for(features, feature), [[]])

    def test_unresolved_target_is_skipped(self) -> None:
        group = _group(count=1, file_count=1, target="ghost")
        self.assertEqual(detect_alerts(group, "src/a", {"src/a": set()}, {}), [])

    def test_circular_and_tight_together(self) -> None:
        a = Feature(name="a", path="src/a", dependencies=[_dep("b", line=i) for i in range(6)])
        b = Feature(name="b", path="src/b", dependencies=[_dep("a")])
        self.assertEqual(
            self._alerts_for([a, b], a),
            [[DependencyAlert.CIRCULAR, DependencyAlert.TIGHT]],
        )


class FeatureLevelTests(unittest.TestCase):
    def test_unique_count_and_alert_union(self) -> None:
        a = Feature(
            name="a",
            path="src/a",
            dependencies=[_dep("b"), _dep("b"), *[_dep("c", line=i) for i in range(6)]],
        )
        b = Feature(name="b", path="src/b", dependencies=[_dep("a")])
        c = Feature(name="c", path="src/c")
        features = [a, b, c]

        self.assertEqual(unique_dependency_count(a), 2)
        self.assertEqual(
            feature_dependency_alerts(a, features),
            [DependencyAlert.CIRCULAR, DependencyAlert.TIGHT],
        )
        self.assertEqual(feature_dependency_alerts(c, features), [])

    def test_describe_dependencies_rows(self) -> None:
        a = Feature(name="a", path="src/a", dependencies=[_dep("b"), _dep("b", line=2)])
        b = Feature(name="b", path="src/b")
        rows = describe_dependencies(a, [a, b])

        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].feature, "b")
        self.assertEqual(rows[0].count, 2)
        self.assertEqual(rows[0].alerts, [])
        self.assertEqual(len(rows[0].items), 2)


if __name__ == "__main__":
    unittest.main()
