import json
from pathlib import Path

import pytest

from state_reconciler.adapters import ManifestError, ManifestLoader
from state_reconciler.models import (
    ImportDirective,
    MovedDirective,
    RemovedDirective,
    parse_address,
)

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"


def write_manifest(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_loads_yaml_fixture():
    manifest = ManifestLoader().load([FIXTURES / "buckets-refactor.yaml"])

    assert [str(node.address) for node in manifest.resources] == [
        'aws_s3_bucket.buckets["one"]',
        'aws_s3_bucket.buckets["two"]',
        'aws_s3_bucket.buckets["three"]',
        "module.network.aws_vpc.main",
        "aws_instance.web",
    ]
    assert manifest.resources[-1].attributes == {"instance_type": "t3.micro"}

    moved = [item for item in manifest.directives if isinstance(item, MovedDirective)]
    imports = [item for item in manifest.directives if isinstance(item, ImportDirective)]
    removed = [item for item in manifest.directives if isinstance(item, RemovedDirective)]

    assert len(moved) == 3
    assert moved[0].from_ == parse_address("aws_s3_bucket.buckets[0]")
    assert moved[0].to == parse_address('aws_s3_bucket.buckets["one"]')
    assert imports == [
        ImportDirective(to=parse_address("aws_instance.web"), id="i-0123456789abcdef0")
    ]
    assert removed == [
        RemovedDirective(from_=parse_address("aws_instance.legacy"), destroy=False)
    ]
    assert manifest.sources == [FIXTURES / "buckets-refactor.yaml"]


def test_merges_default_and_extra_manifests(tmp_path: Path):
    defaults = write_manifest(
        tmp_path,
        "defaults.json",
        json.dumps({"resources": [{"address": "aws_vpc.main"}]}),
    )
    extra = write_manifest(
        tmp_path,
        "extra.yaml",
        "moved:\n  - from: aws_vpc.old\n    to: aws_vpc.main\n",
    )

    manifest = ManifestLoader(default_manifests=[defaults]).load([extra])

    assert [str(node.address) for node in manifest.resources] == ["aws_vpc.main"]
    assert manifest.directives == [
        MovedDirective(from_=parse_address("aws_vpc.old"), to=parse_address("aws_vpc.main"))
    ]


def test_for_each_blocks_are_kept_as_templates():
    manifest = ManifestLoader().parse(
        {
            "import": [
                {"to": "aws_instance.web", "for_each": {"a": "i-1", 2: "i-2"}},
            ],
            "removed": [
                {"from": "aws_instance.old", "destroy": False, "for_each": ["x", "y"]},
            ],
        }
    )

    imported, removed = manifest.directives
    assert [(str(item.to), item.id) for item in imported.expand()] == [
        ('aws_instance.web["a"]', "i-1"),
        ("aws_instance.web[2]", "i-2"),
    ]
    assert removed.for_each == ("x", "y")
    assert removed.destroy is False


def test_removed_destroys_by_default():
    manifest = ManifestLoader().parse({"removed": [{"from": "aws_instance.old"}]})

    assert manifest.directives == [RemovedDirective(from_=parse_address("aws_instance.old"))]
    assert manifest.directives[0].destroy is True


def test_missing_manifest_raises(tmp_path: Path):
    with pytest.raises(ManifestError):
        ManifestLoader().load([tmp_path / "missing.yaml"])


@pytest.mark.parametrize(
    "content",
    [
        "moved: [unclosed",
        "- just\n- a\n- list\n",
        "moved: not-a-list\n",
        "moved:\n  - from: aws_vpc.a\n",
        "import:\n  - to: aws_vpc.a\n",
        "resources:\n  - address: not-an-address\n",
        "import:\n  - to: aws_vpc.a\n    for_each:\n      1.5: x\n",
        "removed:\n  - from: aws_vpc.a\n    for_each: [-1]\n",
        "removed:\n  - from: aws_vpc.a\n    destroy: \"false\"\n",
        "removed:\n  - from: aws_vpc.a\n    destroy: 0\n",
    ],
)
def test_invalid_manifests_raise(tmp_path: Path, content: str):
    path = write_manifest(tmp_path, "bad.yaml", content)

    with pytest.raises(ManifestError):
        ManifestLoader().load([path])


def test_quoted_destroy_flag_is_rejected():
    with pytest.raises(ManifestError, match="destroy must be true or false"):
        ManifestLoader().parse({"removed": [{"from": "aws_instance.old", "destroy": "false"}]})
