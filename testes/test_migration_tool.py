import json
import os
import random

import pytest

from page_migrator import migration_tool
from page_migrator.config import load_config
from page_migrator.migration_tool import PageMigrationTool
from page_migrator.models.page import LedgerRecord
from page_migrator.utils.errors import RetryExhaustedError, TransientTransportError
from page_migrator.utils.ledger import MigrationLedger

ICON_CSV = (
    "id,title,filename,url,alt_text\n"
    "20901,Icon=shield-2,shield-2.svg,https://s/shield-2.svg,\n"
    "20902,Icon=firewall,firewall.svg,https://s/firewall.svg,\n"
    "20903,Icon=headphones,headphones.svg,https://s/headphones.svg,\n"
    "20904,Icon=gear-man,gear-man.svg,https://s/gear-man.svg,\n"
    "20905,Icon=cloud-1,cloud-1.svg,https://s/cloud-1.svg,\n"
)


class FakeSite:
    """In-memory stand-in for the staging site's page and media endpoints."""

    def __init__(self):
        self.pages = {}
        self.calls = []
        self.uploads = []
        self.fail_create_slugs = set()
        self.fail_uploads = False
        self.on_create = None
        self._next_page = 1000

    def create_page(self, cfg, payload):
        self.calls.append(("create", payload["slug"]))
        if self.on_create:
            self.on_create(payload)
        if payload["slug"] in self.fail_create_slugs:
            raise RetryExhaustedError(3, TransientTransportError("HTTP 500: down", status_code=500))
        self._next_page += 1
        self.pages[self._next_page] = {"payload": payload, "media": {}}
        return {"id": self._next_page, "link": f"https://staging.example.com/{payload['slug']}/"}

    def update_page(self, cfg, page_id, payload):
        page_id = int(page_id)
        self.calls.append(("update", page_id, sorted(payload)))
        page = self.pages[page_id]
        if set(payload) == {"acf"}:
            page["media"].update(payload["acf"])
        else:
            page["payload"] = payload
        return {"id": page_id, "link": f"https://staging.example.com/{page['payload']['slug']}/"}

    def upload_media(self, cfg, image_path, title):
        if self.fail_uploads:
            raise RetryExhaustedError(3, TransientTransportError("HTTP 413: too large", status_code=413))
        self.uploads.append(os.path.basename(image_path))
        return 5000 + len(self.uploads)

    @property
    def creates(self):
        return [c for c in self.calls if c[0] == "create"]


@pytest.fixture
def site(monkeypatch):
    fake = FakeSite()
    monkeypatch.setattr(migration_tool, "create_page", fake.create_page)
    monkeypatch.setattr(migration_tool, "update_page", fake.update_page)
    monkeypatch.setattr(migration_tool, "upload_media", fake.upload_media)
    return fake


@pytest.fixture
def workspace(tmp_path):
    (tmp_path / "pages").mkdir()
    images = tmp_path / "images"
    images.mkdir()
    for i in range(6):
        (images / f"photo-{i}.webp").write_bytes(b"img")
    (tmp_path / "icon_files.csv").write_text(ICON_CSV, encoding="utf-8")
    return tmp_path


def write_page(workspace, origin_id, slug, *, services=(), images=("about_us_image",), source_icon=None):
    acf = {
        "hero_title": slug.title(),
        "icon": 1,
        "interlinks": [],
        "services_repeater": [{"service_title": t, "service_icon": source_icon} for t in services],
    }
    for field in images:
        acf[field] = 123
    data = {
        "id": origin_id,
        "title": {"rendered": slug.replace("-", " ").title()},
        "slug": slug,
        "status": "publish",
        "content": {"rendered": f"<p>{slug}</p>"},
        "acf": acf,
    }
    path = workspace / "pages" / f"{origin_id}.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def make_tool(**overrides):
    config = {
        "wordpress": {
            "base_url": "https://staging.example.com",
            "username": "editor",
            "password": "secret",
            "retry": {"initial_delay": 0},
        },
        "test_mode": False,
    }
    config.update(overrides)
    tool = PageMigrationTool(load_config(config), rng=random.Random(11))
    tool.prepare(fetch_icons=False)
    return tool


def run(**overrides):
    tool = make_tool(**overrides)
    report = tool.migrate_pages(tool.discover_pages())
    return tool, report


def test_rerun_updates_instead_of_duplicating(workspace, site):
    write_page(workspace, 11, "cloud-services")
    write_page(workspace, 12, "security")

    _, first = run()
    assert first.successes == 2
    assert len(site.creates) == 2
    assert len(site.uploads) == 2
    ledger = MigrationLedger.load("created_pages.json")
    assert len(ledger) == 2
    first_entries = {r.origin_id: r.to_json() for r in ledger}

    site.calls.clear()
    _, second = run()
    assert second.successes == 2
    assert site.creates == []
    assert [c[1] for c in site.calls if c[0] == "update"] == [1001, 1002]
    # media ids are carried forward, nothing re-uploaded
    assert len(site.uploads) == 2

    ledger = MigrationLedger.load("created_pages.json")
    assert len(ledger) == 2
    assert {r.origin_id: r.to_json() for r in ledger} == first_entries


def test_failed_page_does_not_stop_the_run(workspace, site):
    write_page(workspace, 1, "alpha")
    write_page(workspace, 2, "bravo")
    write_page(workspace, 3, "charlie")
    site.fail_create_slugs = {"bravo"}

    tool, report = run()

    assert report.successes == 2
    assert report.failures == 1
    failed = report.failed[0]
    assert failed.origin_id == "2"
    assert "Failed after 3 attempts" in failed.error

    ledger = MigrationLedger.load("created_pages.json")
    assert sorted(r.origin_id for r in ledger) == ["1", "3"]

    errors_log = workspace / "reports" / "migration" / "errors.jsonl"
    errors = [json.loads(line) for line in errors_log.read_text(encoding="utf-8").splitlines()]
    assert [e["slug"] for e in errors] == ["bravo"]

    tool.summarize(report)
    log = (workspace / "reports" / "migration" / "migration.log").read_text(encoding="utf-8")
    assert "Bravo" in log
    assert "Success: 2/3" in log


def test_icons_are_unique_across_all_pages(workspace, site):
    write_page(workspace, 1, "home", services=["<strong>Cybersecurity Solutions</strong>", "Cybersecurity"])
    write_page(workspace, 2, "about", services=["Cybersecurity", "IT Support", "Cloud"])
    write_page(workspace, 3, "contact", services=["Cybersecurity"])

    run()

    assigned = []
    for page in site.pages.values():
        for service in page["payload"]["acf"]["services_repeater"]:
            assigned.append(service["service_icon"])
    non_null = [i for i in assigned if i is not None]
    assert len(non_null) == len(set(non_null)) == 5
    # six services, five icons: the last one degrades to no icon
    assert assigned.count(None) == 1

    home = site.pages[1001]["payload"]["acf"]["services_repeater"]
    assert [s["service_icon"] for s in home] == [20901, 20902]


def test_payload_has_no_image_fields_and_images_follow_in_second_update(workspace, site):
    fields = (
        "image_text_section_1_image",
        "image_text_section_2_image",
        "image_text_section_3_image",
        "image_text_section_4_image",
        "about_us_image",
    )
    write_page(workspace, 1, "services", images=fields)

    _, report = run()

    page = site.pages[1001]
    assert not set(fields) & set(page["payload"]["acf"])
    assert "icon" not in page["payload"]["acf"]
    assert page["payload"]["page-category"] == [10]
    assert set(page["media"]) == set(fields)
    # five fields, five different files
    assert len(site.uploads) == len(set(site.uploads)) == 5
    assert report.outcomes[0].record.media_ids == page["media"]


def test_update_without_recorded_media_uploads_images(workspace, site):
    write_page(workspace, 1, "services")
    site.pages[900] = {"payload": {"slug": "services"}, "media": {}}
    ledger = MigrationLedger("created_pages.json")
    ledger.upsert(LedgerRecord(originId="1", pageId="900", title="Services"))
    ledger.save()

    _, report = run()

    assert site.creates == []
    assert len(site.uploads) == 1
    assert report.outcomes[0].record.media_ids == {"about_us_image": 5001}


def test_upload_new_images_forces_reupload(workspace, site):
    write_page(workspace, 1, "services")
    run()
    assert len(site.uploads) == 1

    _, report = run(upload_new_images=True)
    assert len(site.uploads) == 2
    assert report.outcomes[0].record.media_ids == {"about_us_image": 5002}


def test_image_failure_keeps_page_in_ledger_without_media(workspace, site):
    write_page(workspace, 1, "services")
    site.fail_uploads = True

    _, report = run()

    outcome = report.outcomes[0]
    assert not outcome.success
    assert "image upload failed" in outcome.error
    entry = MigrationLedger.load("created_pages.json").find("1")
    assert entry.page_id == "1001"
    assert entry.media_ids == {}

    # the next run takes the update path and retries the images
    site.fail_uploads = False
    site.calls.clear()
    _, report = run()
    assert report.successes == 1
    assert site.creates == []
    assert report.outcomes[0].record.media_ids == {"about_us_image": 5001}


def test_malformed_page_is_reported_and_skipped(workspace, site):
    (workspace / "pages" / "0.json").write_text(json.dumps({"id": 5, "slug": "x"}), encoding="utf-8")
    write_page(workspace, 1, "services")

    _, report = run()

    assert report.successes == 1
    assert report.failures == 1
    assert "malformed" in report.failed[0].error
    assert len(site.creates) == 1


def test_ledger_is_flushed_after_each_page(workspace, site):
    write_page(workspace, 1, "alpha")
    write_page(workspace, 2, "bravo")
    seen_on_disk = []

    def check_ledger(payload):
        if payload["slug"] == "bravo":
            seen_on_disk.extend(r.origin_id for r in MigrationLedger.load("created_pages.json"))

    site.on_create = check_ledger
    run()
    assert seen_on_disk == ["1"]


def test_test_mode_processes_only_first_page(workspace, site):
    write_page(workspace, 1, "alpha")
    write_page(workspace, 2, "bravo")

    tool, report = run(test_mode=True)
    assert len(report.outcomes) == 1
    assert site.creates == [("create", "alpha")]


def test_missing_icon_catalog_still_migrates(workspace, site):
    os.remove(workspace / "icon_files.csv")
    write_page(workspace, 1, "home", services=["Cybersecurity"], source_icon=4321)

    _, report = run()

    assert report.successes == 1
    assert site.pages[1001]["payload"]["acf"]["services_repeater"] == [
        {"service_title": "Cybersecurity", "service_icon": None}
    ]


def test_should_upload_images_decision_table(workspace):
    tool = make_tool()
    with_media = LedgerRecord(originId="1", pageId="2", media_ids={"about_us_image": 9})
    without_media = LedgerRecord(originId="1", pageId="2")

    assert tool.should_upload_images(None) is True
    assert tool.should_upload_images(without_media) is True
    assert tool.should_upload_images(with_media) is False
    assert make_tool(upload_new_images=True).should_upload_images(with_media) is True


def test_rerun_with_custom_image_fields_keeps_recorded_media(workspace, site):
    write_page(workspace, 1, "services", images=("hero_image",))

    _, first = run(image_fields=["hero_image"])
    assert first.outcomes[0].record.media_ids == {"hero_image": 5001}
    assert "hero_image" not in site.pages[1001]["payload"]["acf"]

    _, second = run(image_fields=["hero_image"])
    assert second.successes == 1
    assert len(site.uploads) == 1
    assert second.outcomes[0].record.media_ids == {"hero_image": 5001}
