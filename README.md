# distribyted

A library for a read-only virtual filesystem whose contents come from
torrents, zip archives and in-memory files. Files are read on demand: nothing
is fetched or unpacked until a caller asks for bytes at a given offset.

## Modules

**Virtual filesystem core** (`distribyted.vfs`)

- `File` and `Filesystem` are the abstract interfaces: `size()`, `is_dir()`,
  `read(size)`, `read_at(size, offset)`, `close()`, and `open(filename)` /
  `read_dir(path)`. Missing paths raise `FileNotFoundError`.
- `Dir` is an empty directory node; `MemoryFile` holds bytes in memory;
  `Memory` is a filesystem kept in memory, filled through its `storage`.
- `Storage` is the path tree behind the filesystems. Adding a file creates
  its parent directories; adding a file where a non-directory already exists
  raises `FileExistsError`. Paths are normalised with `clean_path`
  (backslashes are accepted). Files whose extension has a registered factory
  are mounted as nested filesystems.
- `FileInfo` is a frozen record of name, size and directory flag, with
  `mode()` (`0o555`, plus the directory bit for directories) and
  `mod_time()` (the current time).

**Archives** (`distribyted.archive`)

`Archive` exposes the contents of an archive as a filesystem, listing the
archive once on first use. `ZipLoader` reads zip archives; each entry becomes
an `ArchiveFile` that is decompressed lazily through a `DiskTeeReader`, so
`read_at` works at any offset.

**Combining filesystems** (`distribyted.container`)

`ContainerFs` mounts several filesystems under chosen paths and presents them
as one tree. `.zip` files inside it are opened as folders
(`SUPPORTED_FACTORIES`).

**Readers** (`distribyted.iio`)

- `DiskTeeReader` turns a forward-only stream into a random-access reader by
  copying what it consumes to a temporary file. `read_at` returns fewer bytes
  at the end of the stream.
- `SeekerWrapper` adds `seek` and a position-tracking `read` on top of any
  reader with `read_at`.

**Torrents** (`distribyted.torrentfs`, `distribyted.stats`,
`distribyted.service`)

These modules work with torrent objects supplied by the caller; they
describe what they need from them as protocols (an `info_hash`, the list of
files with their paths, lengths and readers, transfer counters, piece state
runs, and so on).

- `TorrentFs` lays out the files of added torrents as one filesystem;
  `remove_torrent` drops a torrent by hash. `TorrentFile` reads with a
  per-read timeout, and `read_at_least` keeps reading until enough bytes have
  arrived, raising `EOFError` if the stream ends part way.
- `Stats` tracks torrents by route and reports per-torrent, per-route and
  global download/upload figures and piece states (`PieceStatus`,
  `PieceChunk`, `TorrentStats`, `RouteStats`, `GlobalTorrentStats`).
  Measurements taken within two seconds of the last global measurement
  repeat the previous values. Unknown hashes raise `TorrentNotFoundError`.
- `Service` loads torrents from a configuration loader and from the magnet
  database through a caller-supplied client, creates one `TorrentFs` per
  route, and adds (`add_magnet`) or removes (`remove_from_hash`) torrents at
  run time. Waiting too long for torrent info raises `TimeoutError`.

**Configuration and persistence** (`distribyted.config`,
`distribyted.loader`, `distribyted.peerid`, `distribyted.logging_setup`)

- `Root` and its sections (`HTTPGlobal`, `WebDAVGlobal`, `TorrentGlobal`,
  `FuseGlobal`, `Log`, `Route`, `Torrent`, `Server`) model the YAML
  configuration. `default_config()` gives a complete starting configuration,
  `add_defaults(root)` fills in missing values, and `load_root` / `dump_root`
  convert between YAML text and the model (`load_root` raises `ValueError` on
  invalid input).
- `Handler(path).get()` reads a configuration file and applies the defaults;
  if the file does not exist, it is first written from `default_config()`.
- `ConfigLoader` lists the magnets and torrent files named in the
  configuration. `MagnetDB` stores magnets added at run time in an SQLite
  file inside a given directory, keyed by info hash and route.
  `parse_magnet_info_hash` extracts the hex info hash from a magnet URI
  (hex or base32 form).
- `get_or_create_peer_id(path)` returns a stable 20-byte peer id, creating
  and saving a random one on first use.
- `logging_setup.load(config)` configures the `distribyted` logger to write
  to the console and to a rotating `distribyted.log` in the configured log
  folder, and returns it.

**Serving adapters** (`distribyted.webdav_fs`, `distribyted.httpfs`)

`WebDAVFs` and `HTTPFS` adapt any filesystem to the file interface a WebDAV
or HTTP file server expects: directory listings with `readdir(count)`,
`stat()`, `seek` and `read`. On `WebDAVFs`, `mkdir`, `remove_all`, `rename`
and `WebDAVFile.write` raise `OperationNotSupported`.

## Example

```python
from distribyted.container import ContainerFs
from distribyted.vfs import Memory, MemoryFile

media = Memory()
media.storage.add(MemoryFile(b"ID3 sample data"), "/album/track01.mp3")

combined = ContainerFs({"/media": media})
print(sorted(combined.read_dir("/")))           # ['media']
f = combined.open("/media/album/track01.mp3")
print(f.read_at(3, 0))                          # b'ID3'
f.close()
```

```python
from distribyted.config import Handler

config = Handler("./distribyted-data/config/config.yaml").get()
for route in config.routes:
    print(route.name, len(route.torrents))
```

## Configuration defaults

| Setting | Default |
| --- | --- |
| HTTP address | `0.0.0.0:4444` |
| WebDAV port | `36911` |
| Torrent add timeout | 60 s |
| Torrent read timeout | 120 s |
| Global cache size | 2048 MB |
| Metadata folder | `./distribyted-data/metadata` |
| Mount folder | `./distribyted-data/mount` |
| Log folder | `./distribyted-data/logs` |

## What this package does not do

- It has no BitTorrent client: it does not talk to peers, trackers or the
  DHT. `TorrentFs`, `Stats` and `Service` work with torrent and client
  objects that the caller provides.
- It does not mount anything through FUSE and does not run an HTTP or WebDAV
  server; `HTTPFS` and `WebDAVFs` only shape a filesystem for such a server.
- It has no command-line program.
- Among archive formats only zip is read.
- The `servers` section of the configuration is modelled, but nothing here
  seeds or watches served folders.