"""Unit tests for the Deployment builder."""

from __future__ import annotations

import copy

import pytest

from fakes import make_swxfll
from swxfll_operator.builders.deployment import (
    create_deployment_from_spec,
    desired_state,
    diff_deployment,
    labels_for,
    merge_deployment,
    parse_image_tag,
    resolve_image,
    selector_labels_for,
)
from swxfll_operator.errors import ConfigurationError

IMAGE = "docker.io/swxfll/swxfll:1.4.36-alpine"


class TestImageResolution:
    """Test image lookup and tag parsing."""

    def test_resolve_image(self) -> None:
        """Test resolving the image from the lookup."""
        assert resolve_image({"SWXFLL_IMAGE": IMAGE}.get) == IMAGE

    @pytest.mark.parametrize("env", [{}, {"SWXFLL_IMAGE": ""}])
    def test_resolve_image_missing(self, env) -> None:
        """Test that a missing or empty image is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_image(env.get)

        assert "SWXFLL_IMAGE" in str(exc_info.value)

    @pytest.mark.parametrize(
        "image, tag",
        [
            ("swxfll:1.4.36", "1.4.36"),
            ("docker.io/swxfll/swxfll:1.4.36-alpine", "1.4.36-alpine"),
            ("registry.local:5000/swxfll", None),
            ("registry.local:5000/swxfll:v2", "v2"),
            ("swxfll", None),
            ("swxfll@sha256:" + "a" * 64, None),
            ("swxfll:1.0@sha256:" + "a" * 64, "1.0"),
            ("swxfll:", None),
        ],
    )
    def test_parse_image_tag(self, image, tag) -> None:
        """Test tag extraction, including references without a tag."""
        assert parse_image_tag(image) == tag


class TestLabels:
    """Test label derivation."""

    def test_labels_include_version(self) -> None:
        """Test the full label set for a tagged image."""
        assert labels_for("sample", IMAGE) == {
            "app.kubernetes.io/name": "Swxfll",
            "app.kubernetes.io/instance": "sample",
            "app.kubernetes.io/version": "1.4.36-alpine",
            "app.kubernetes.io/part-of": "swxfll-operator",
            "app.kubernetes.io/created-by": "controller-manager",
        }

    def test_labels_omit_version_without_tag(self) -> None:
        """Test that an untagged image yields no version label."""
        labels = labels_for("sample", "swxfll")

        assert "app.kubernetes.io/version" not in labels
        assert labels["app.kubernetes.io/instance"] == "sample"

    def test_selector_labels_are_stable(self) -> None:
        """Test that selector labels never include the version."""
        assert "app.kubernetes.io/version" not in selector_labels_for("sample")


class TestCreateDeployment:
    """Test desired Deployment synthesis."""

    def test_basic_deployment(self) -> None:
        """Test the derived fields of the Deployment."""
        body = make_swxfll(size=4, container_port=8080)
        deployment = create_deployment_from_spec(body, IMAGE)

        assert deployment["metadata"]["name"] == "sample"
        assert deployment["metadata"]["namespace"] == "default"
        assert deployment["spec"]["replicas"] == 4

        container = deployment["spec"]["template"]["spec"]["containers"][0]
        assert container["name"] == "swxfll"
        assert container["image"] == IMAGE
        assert container["imagePullPolicy"] == "IfNotPresent"
        assert container["ports"] == [{"containerPort": 8080, "name": "swxfll"}]
        assert container["command"] == ["swxfll", "-m=64", "-o", "modern", "-v"]
        assert container["securityContext"]["capabilities"] == {"drop": ["ALL"]}

    def test_owner_reference(self) -> None:
        """Test that the Deployment is owned by the Swxfll resource."""
        deployment = create_deployment_from_spec(make_swxfll(), IMAGE)

        assert deployment["metadata"]["ownerReferences"] == [
            {
                "apiVersion": "cache.swxfll.com/v1alpha1",
                "kind": "Swxfll",
                "name": "sample",
                "uid": "sample-uid",
                "controller": True,
                "blockOwnerDeletion": True,
            }
        ]

    def test_selector_matches_template(self) -> None:
        """Test that the selector is a subset of the pod labels."""
        deployment = create_deployment_from_spec(make_swxfll(), IMAGE)
        selector = deployment["spec"]["selector"]["matchLabels"]
        labels = deployment["spec"]["template"]["metadata"]["labels"]

        assert selector.items() <= labels.items()

    def test_desired_state_missing_image(self) -> None:
        """Test that synthesis fails before building anything without an image."""
        with pytest.raises(ConfigurationError):
            desired_state(make_swxfll(), {}.get)


class TestDiffAndMerge:
    """Test drift detection and merging."""

    @pytest.fixture
    def desired(self):
        return create_deployment_from_spec(make_swxfll(size=4), IMAGE)

    @pytest.fixture
    def observed(self, desired):
        observed = copy.deepcopy(desired)
        observed["metadata"]["resourceVersion"] = "42"
        observed["metadata"]["annotations"] = {"deployment.kubernetes.io/revision": "1"}
        observed["spec"]["template"]["spec"]["containers"][0]["ports"][0]["protocol"] = "TCP"
        observed["spec"]["template"]["spec"]["containers"][0]["terminationMessagePath"] = "/dev/termination-log"
        observed["spec"]["template"]["metadata"]["labels"]["extra"] = "kept"
        observed["status"] = {"replicas": 4, "readyReplicas": 4}
        return observed

    def test_no_drift(self, observed, desired) -> None:
        """Test that server defaults and foreign fields are not drift."""
        assert diff_deployment(observed, desired) == []

    def test_replica_drift(self, observed, desired) -> None:
        """Test detecting a replica count change."""
        observed["spec"]["replicas"] = 2

        assert diff_deployment(observed, desired) == ["replicas"]

    def test_image_port_and_label_drift(self, observed) -> None:
        """Test detecting image, port and label changes."""
        desired = create_deployment_from_spec(make_swxfll(size=4, container_port=9000), "swxfll:2.0")

        assert diff_deployment(observed, desired) == ["image", "containerPort", "labels"]

    def test_missing_container_is_drift(self, observed, desired) -> None:
        """Test that a Deployment without our container drifts."""
        observed["spec"]["template"]["spec"]["containers"][0]["name"] = "other"

        assert "image" in diff_deployment(observed, desired)

    def test_merge_only_touches_replicas(self, observed, desired) -> None:
        """Test that fixing replica drift changes nothing else."""
        observed["spec"]["replicas"] = 2
        expected = copy.deepcopy(observed)
        expected["spec"]["replicas"] = 4

        merged = merge_deployment(observed, desired)

        assert merged == expected
        assert observed["spec"]["replicas"] == 2

    def test_merge_image_port_and_labels(self, observed) -> None:
        """Test merging several drifted fields over the observed object."""
        desired = create_deployment_from_spec(make_swxfll(size=4, container_port=9000), "swxfll:2.0")

        merged = merge_deployment(observed, desired)

        container = merged["spec"]["template"]["spec"]["containers"][0]
        assert container["image"] == "swxfll:2.0"
        assert container["ports"][0] == {"containerPort": 9000, "name": "swxfll", "protocol": "TCP"}
        assert container["terminationMessagePath"] == "/dev/termination-log"
        labels = merged["spec"]["template"]["metadata"]["labels"]
        assert labels["app.kubernetes.io/version"] == "2.0"
        assert labels["extra"] == "kept"
        assert merged["metadata"]["resourceVersion"] == "42"
        assert merged["status"] == {"replicas": 4, "readyReplicas": 4}
        assert diff_deployment(merged, desired) == []

    def test_merge_drops_stale_version_label(self, observed) -> None:
        """Test that the version label goes away when the new image has no tag."""
        desired = create_deployment_from_spec(make_swxfll(size=4), "swxfll")

        merged = merge_deployment(observed, desired)

        assert "app.kubernetes.io/version" not in merged["spec"]["template"]["metadata"]["labels"]

    def test_merge_adds_missing_port(self, observed, desired) -> None:
        """Test that a missing named port is added."""
        observed["spec"]["template"]["spec"]["containers"][0]["ports"] = []

        merged = merge_deployment(observed, desired)

        assert merged["spec"]["template"]["spec"]["containers"][0]["ports"] == [
            {"containerPort": 11211, "name": "swxfll"}
        ]
