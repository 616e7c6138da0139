from sfcli.projects import ConfiguredProject, get_configured_and_running


def test_running_project_updates_proxy_entry():
    proxy = {"~/app": ConfiguredProject(scheme="https", domains=["app.wip"])}
    running = {"~/app": ConfiguredProject(port=8000, scheme="http")}
    merged = get_configured_and_running(proxy, running)
    assert merged["~/app"].port == 8000
    assert merged["~/app"].scheme == "http"
    assert merged["~/app"].domains == ["app.wip"]


def test_running_only_project_is_added_without_domains():
    proxy = {}
    running = {"~/other": ConfiguredProject(port=8001, scheme="https", domains=["x.wip"])}
    merged = get_configured_and_running(proxy, running)
    assert merged == {"~/other": ConfiguredProject(port=8001, scheme="https")}
    assert merged["~/other"] is not running["~/other"]


def test_proxy_mapping_is_updated_in_place():
    proxy = {"~/a": ConfiguredProject(scheme="https")}
    merged = get_configured_and_running(proxy, {"~/b": ConfiguredProject(port=1)})
    assert merged is proxy
    assert sorted(proxy) == ["~/a", "~/b"]
    assert proxy["~/a"].port == 0