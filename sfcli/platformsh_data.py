"""PHP extensions and services available on Platform.sh."""

from __future__ import annotations

from dataclasses import dataclass


def _versions(spec: str) -> tuple[str, ...]:
    return tuple(spec.split())


_ALL_7_8 = "7.0 7.1 7.2 7.3 7.4 8.0 8.1"
_ALL = "5.4 5.5 5.6 7.0 7.1 7.2 7.3 7.4 8.0 8.1"

AVAILABLE_PHP_EXTENSIONS: dict[str, tuple[str, ...]] = {
    name: _versions(spec)
    for name, spec in {
        "amqp": "7.0 7.1 7.2 7.3 7.4",
        "apc": "5.4 5.5",
        "apcu": "5.4 5.6 7.0 7.1 7.2 7.3 7.4 8.0 8.1",
        "apcu_bc": "7.0 7.1 7.2 7.3 7.4",
        "applepay": "7.0 7.1 7.4",
        "bcmath": _ALL_7_8,
        "blackfire": _ALL,
        "bz2": _ALL_7_8,
        "calendar": _ALL_7_8,
        "ctype": _ALL_7_8,
        "curl": _ALL,
        "dba": _ALL_7_8,
        "dom": _ALL_7_8,
        "enchant": _ALL,
        "event": "7.1 7.2 7.3 7.4 8.0",
        "exif": _ALL_7_8,
        "ffi": "7.4 8.0 8.1",
        "fileinfo": _ALL_7_8,
        "ftp": _ALL_7_8,
        "gd": _ALL,
        "gearman": "5.4 5.5 5.6",
        "geoip": "5.4 5.5 5.6 7.0 7.1 7.2 7.3 7.4",
        "gettext": _ALL_7_8,
        "gmp": _ALL,
        "http": "5.4 5.5 7.3 7.4 8.0 8.1",
        "iconv": _ALL_7_8,
        "igbinary": _ALL_7_8,
        "imagick": _ALL,
        "imap": _ALL,
        "interbase": "5.4 5.5 5.6 7.0 7.1 7.2 7.3 7.4 8.0",
        "intl": _ALL,
        "ioncube": "7.0 7.1 7.2",
        "json": "5.6 7.0 7.1 7.2 7.3 7.4 8.0 8.1",
        "ldap": _ALL,
        "mailparse": "7.0 7.1 7.2 7.4 8.0 8.1",
        "mbstring": _ALL_7_8,
        "mcrypt": "5.4 5.5 5.6 7.0 7.1",
        "memcache": "5.4 5.5 5.6",
        "memcached": "5.4 5.5 5.6 7.0 7.1 7.2 7.3 7.4 8.0",
        "mongo": "5.4 5.5 5.6",
        "mongodb": "7.0 7.1 7.2 7.3 7.4 8.0",
        "msgpack": "5.6 7.0 7.1 7.2 7.3 7.4 8.0",
        "mssql": "5.4 5.5 5.6",
        "mysql": "5.4 5.5 5.6",
        "mysqli": _ALL,
        "mysqlnd": _ALL,
        "newrelic": "5.6 7.0 7.1 7.2 7.3 7.4 8.0",
        "oauth": _ALL_7_8,
        "odbc": _ALL,
        "opcache": "5.5 5.6 7.0 7.1 7.2 7.3 7.4 8.0 8.1",
        "pdo": _ALL,
        "pdo_dblib": _ALL,
        "pdo_firebird": "5.4 5.5 5.6 7.0 7.1 7.2 7.3 7.4",
        "pdo_mysql": _ALL,
        "pdo_odbc": _ALL,
        "pdo_pgsql": _ALL,
        "pdo_sqlite": _ALL,
        "pdo_sqlsrv": "7.0 7.1 7.2 7.3 7.4 8.0",
        "pgsql": _ALL,
        "phar": _ALL_7_8,
        "pinba": "5.4 5.5 5.6",
        "posix": _ALL_7_8,
        "propro": "5.6",
        "pspell": _ALL,
        "pthreads": "7.1",
        "raphf": "5.6 7.4 8.0 8.1",
        "readline": _ALL,
        "recode": "5.4 5.5 5.6 7.0 7.1 7.2 7.3",
        "redis": _ALL,
        "shmop": _ALL_7_8,
        "simplexml": _ALL_7_8,
        "snmp": _ALL,
        "soap": _ALL_7_8,
        "sockets": _ALL_7_8,
        "sodium": "7.2 7.3 7.4 8.0 8.1",
        "sourceguardian": "7.0 7.1",
        "spplus": "5.4 5.5",
        "sqlite3": _ALL,
        "sqlsrv": "7.0 7.1 7.2 7.3 7.4 8.0",
        "ssh2": _ALL,
        "sybase": "7.1 7.2 7.3 7.4 8.0 8.1",
        "sysvmsg": _ALL_7_8,
        "sysvsem": _ALL_7_8,
        "sysvshm": _ALL_7_8,
        "tideways": _ALL_7_8,
        "tideways-xhprof": "7.0 7.1 7.2 7.3 7.4",
        "tidy": _ALL,
        "tokenizer": _ALL_7_8,
        "uuid": "7.1 7.2 7.3 7.4 8.0 8.1",
        "wddx": "7.0 7.1 7.2 7.3 7.4",
        "xdebug": "7.1 7.2 7.3 7.4 8.0 8.1",
        "xcache": "5.4 5.5",
        "xhprof": "5.4 5.5 5.6",
        "xml": _ALL_7_8,
        "xmlreader": _ALL_7_8,
        "xmlrpc": "5.4 5.5 5.6 7.0 7.1 7.2 7.3 7.4 8.1",
        "xmlwriter": _ALL_7_8,
        "xsl": _ALL,
        "yaml": "7.1 7.2 7.3 7.4 8.0 8.1",
        "zbarcode": "7.0 7.1 7.2 7.3",
        "zendopcache": _ALL,
        "zip": _ALL_7_8,
    }.items()
}


@dataclass(frozen=True)
class Service:
    """A Platform.sh service with its deprecated and supported versions."""

    type: str
    deprecated: tuple[str, ...] = ()
    supported: tuple[str, ...] = ()

    def last_version(self) -> str | None:
        """Return the newest supported version, or the newest deprecated one."""
        versions = self.supported or self.deprecated
        return versions[-1] if versions else None


AVAILABLE_SERVICES: tuple[Service, ...] = tuple(
    Service(kind, _versions(deprecated), _versions(supported))
    for kind, deprecated, supported in (
        ("chrome-headless", "", "73 80 81 83 84 86 91"),
        ("elasticsearch", "0.9 1.4 1.7 2.4 5.2 5.4 6.5 6.8 7.2 7.5 7.7", "7.9 7.10"),
        ("influxdb", "", "1.2 1.3 1.7 1.8"),
        ("kafka", "", "2.1 2.2 2.3 2.4 2.5"),
        ("mariadb", "5.5", "10.0 10.1 10.2 10.3 10.4 10.5"),
        ("memcached", "", "1.4 1.5 1.6"),
        ("mongodb", "3.0 3.2 3.4 3.6", ""),
        ("mysql", "5.5", "10.0 10.1 10.2 10.3 10.4 10.5"),
        ("network-storage", "", "1.0"),
        ("oracle-mysql", "", "5.7 8.0"),
        ("postgresql", "9.3 9.4 9.5", "9.6 10 11 12 13"),
        ("rabbitmq", "", "3.5 3.6 3.7 3.8"),
        ("redis", "2.8 3.0", "3.2 4.0 5.0 6.0"),
        ("solr", "3.6 4.10 6.3 6.6 7.6", "7.7 8.0 8.4 8.6"),
        ("varnish", "", "5.1 5.2 6.0 6.3"),
        ("vault-kms", "", "1.6"),
    )
)


def is_php_extension_available(ext: str, php_version: str) -> bool:
    """Tell whether a PHP extension is available for the given PHP version."""
    return php_version in AVAILABLE_PHP_EXTENSIONS.get(ext, ())


def service_last_version(name: str) -> str | None:
    """Return the most recent version of a service, or ``None`` if unknown."""
    for service in AVAILABLE_SERVICES:
        if service.type == name:
            version = service.last_version()
            if version is not None:
                return version
    return None