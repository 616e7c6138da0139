# sfcli

Building blocks for running PHP projects on a local development web server.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## What is inside

- `sfcli.fcgi`: a FastCGI client. `dial` and `dial_timeout` connect over
  `tcp` or `unix`; `FCGIClient.get`, `FCGIClient.post`, `FCGIClient.post_form`
  and `FCGIClient.post_file` send a request and return an `FCGIResponse`
  (`status_code`, `status`, `headers`, `header()`, `read()`). Lower-level
  helpers: `FCGIClient.do`, `FCGIClient.request`, `encode_record`,
  `encode_size`, `extract_status`. Malformed traffic raises `FCGIError`.
- `sfcli.project`: reads `.symfony.local.yaml` (`load_file_config`, returning a
  `FileConfig` with its `Config` and `Worker` entries) and merges it with
  command options (`new_config`, default port 8000). Also guesses the web root
  (`guess_document_root`, `real_document_root`) and the front controller
  (`guess_passthru`, `real_passthru`). An invalid file raises `ConfigError`.
- `sfcli.applications`: finds `.platform.app.yaml` and
  `.platform/applications.yaml` files (`find_app_config_files`,
  `find_local_applications`) and picks the `LocalApplication` for a directory
  (`guess_selected_app_by_directory`, `guess_selected_app_by_wd`).
- `sfcli.platformsh_data`: known PHP extensions and services
  (`is_php_extension_available`, `service_last_version`, `Service`).
- `sfcli.projects`: `ConfiguredProject` and `get_configured_and_running`, which
  merges running projects into proxy-configured ones.
- `sfcli.link_push`: `Link` header parsing (`parse_link_header`,
  `LinkResource`) and the list of local resources to preload
  (`preload_targets`, `is_remote_resource`, `filter_proxied_headers`).
- `sfcli.php_executor`: helpers for running PHP binaries
  (`get_binary_names`, `is_binary_name`, `detect_script_dir`,
  `phpini_dir_for_dir`, `paths_to_watch`, `should_signal_be_ignored`,
  `symlink`) and `PHPValues`, ordered ini settings rendered by `to_bytes`.

## Examples

```python
from sfcli.fcgi import dial

with dial("tcp", "127.0.0.1:9000") as client:
    response = client.get({"SCRIPT_FILENAME": "/srv/app/public/index.php"})
    print(response.status_code, response.read())
```

```python
from sfcli.project import new_config, real_document_root, real_passthru

config, file_config = new_config("/srv/app", {"port": 8080}, "1.0.0")
docroot = real_document_root(config.project_dir, config.document_root)
print(docroot, real_passthru(docroot, config.passthru))
```

## What it does not do

The package holds the pieces around a local web server, not the server itself.
It does not listen for HTTP requests, run or supervise PHP processes, keep pid
or log files, serve a domain proxy, or provide a command-line program.