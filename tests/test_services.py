from pathlib import Path

import pytest

from screeps_init.services import mongo_spec, redis_spec, split_extra_args


def test_redis_argv_matches_local_only_setup():
    spec = redis_spec(Path("/home/container"), host="127.0.0.1", port=6379)

    assert spec.argv == (
        "redis-server",
        "--bind", "127.0.0.1",
        "--port", "6379",
        "--protected-mode", "yes",
        "--dir", "/home/container/data/redis",
        "--appendonly", "yes",
        "--pidfile", "/home/container/data/redis/redis-server.pid",
        "--logfile", "/home/container/data/redis/redis-server.log",
    )
    assert spec.address == "127.0.0.1:6379"
    assert spec.binary == "redis-server"


def test_mongo_spec_paths_and_cache():
    spec = mongo_spec(Path("/srv"), host="127.0.0.1", port=27017, extra_args="--quiet")

    assert spec.argv[0] == "mongod"
    assert spec.pidfile == Path("/srv/data/mongo/mongod.pid")
    assert spec.argv[spec.argv.index("--dbpath") + 1] == "/srv/data/mongo/db"
    assert spec.argv[spec.argv.index("--wiredTigerCacheSizeGB") + 1] == "0.25"
    assert spec.argv[-1] == "--quiet"
    assert "--logappend" in spec.argv


def test_split_extra_args():
    assert split_extra_args("", setting="X") == []
    assert split_extra_args("  ", setting="X") == []
    assert split_extra_args('--save "900 1" --loglevel warning', setting="X") == [
        "--save", "900 1", "--loglevel", "warning",
    ]
    with pytest.raises(ValueError, match="X="):
        split_extra_args('--save "900', setting="X")
