"""Ensure public API surface is limited to SnapShare and schemas."""


def test_facade_importable():
    from snapshare import SnapShare

    assert SnapShare is not None


def test_public_schema_exports():
    import snapshare

    required = [
        "SnapShare",
        "Artifact",
        "ArtifactKind",
        "UploadTarget",
        "HeaderConfig",
        "UploadSuccess",
        "UploadFailure",
        "FailureKind",
        "ActionResult",
        "__version__",
    ]
    for name in required:
        assert hasattr(snapshare, name), f"Missing public export: {name}"


def test_runtime_internals_not_exported():
    import snapshare

    forbidden = [
        "ActionCoordinator",
        "UploadPipeline",
        "ClipboardCopier",
        "ArtifactFileTracker",
        "FileJanitor",
        "ProgressEstimator",
    ]
    for name in forbidden:
        assert name not in snapshare.__all__, f"Runtime internal leaked: {name}"


def test_runtime_components_importable():
    from snapshare.runtime import ActionCoordinator, TargetRegistry, UploadPipeline

    assert ActionCoordinator and TargetRegistry and UploadPipeline
