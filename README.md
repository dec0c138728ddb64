# multifinance

A small HTTP service for a multifinance company. It keeps a register of
consumers (*konsumen*), the credit limit each consumer has for every tenor,
and the instalment transactions recorded against those limits. Data lives in
MySQL through SQLAlchemy; the service is a Flask application.

## Installation

```
pip install .
```

The connection URL built by `multifinance.database.build_database_url` uses
SQLAlchemy's `mysql+pymysql` dialect, so the PyMySQL driver has to be
installed alongside the package to reach a database:

```
pip install pymysql
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Configuration

`multifinance.config.load_config` reads everything from the environment;
a missing variable becomes an empty string.

| Variable         | Meaning                              |
|------------------|--------------------------------------|
| `APP_NAME`       | name printed when the service starts |
| `APP_HOST`       | host name of the service             |
| `APP_PORT`       | port the HTTP server listens on      |
| `APP_SECRET_KEY` | application secret                   |
| `DB_HOST`        | MySQL host                           |
| `DB_PORT`        | MySQL port                           |
| `DB_USER`        | MySQL user                           |
| `DB_PASS`        | MySQL user's password                |
| `DB_NAME`        | MySQL database name                  |

## Running

```
multifinance
```

The command (`multifinance.server.main`) reads the configuration, connects to
the database and serves the API on all interfaces at `APP_PORT` with Flask's
built-in server; an empty `APP_PORT` lets the operating system pick a port.
If the database cannot be reached or the port is not a number, the command
logs the error and exits with status 1.

Every request has a five second budget; a request that takes longer is
answered with `504` and `{"error": "request timeout"}`. The same behaviour is
available for any Flask view through the decorator
`multifinance.middleware.timeout(seconds)`.

To embed the application elsewhere (for example in tests), build it with
`multifinance.server.create_app(session, upload_dir, request_timeout)`, which
takes a SQLAlchemy session, the directory for uploaded photos (default
`storage/uploads`) and the timeout in seconds (default 5). `Server` wraps the
same steps with a `Config` and a `run()` method.

## Logging

`multifinance.logger.get_logger(module, log_dir)` returns one cached logger per
module name. It writes at INFO level to standard output and to a daily file
`storage/logs/app-YYYY-MM-DD.log`, rotated at 10 MB with five gzip-compressed
backups; backups older than seven days are removed at rotation.

## API

All answers are JSON. Successful reads return `{"data": ...}`, writes return
`{"message": ...}` and failures return `{"error": "..."}`.

### Consumers

| Method   | Path             | Body                         |
|----------|------------------|------------------------------|
| `GET`    | `/konsumen`      |                              |
| `GET`    | `/konsumen/<id>` |                              |
| `POST`   | `/konsumen`      | multipart form               |
| `PUT`    | `/konsumen/<id>` | form, every field optional   |
| `DELETE` | `/konsumen/<id>` |                              |

Creating a consumer needs the non-empty form fields `nik`, `fullname`,
`legal_name`, `tempat_lahir`, `tanggal_lahir` (`YYYY-MM-DD`) and `gaji`
(a whole number), and the files `foto_ktp` and `foto_selfie`. The photos are
stored as `ktp_<nik>.jpg` and `selfie_<nik>.jpg` in the upload directory. A
NIK can be registered only once. Failures answer `400`.

An update changes only the fields present in the form; `tanggal_lahir` and
`gaji` are checked as on creation.

The list endpoint pages its results with the query parameters:

* `page` – starts at 1 (default 1)
* `page_size` – default 10, at most 100
* `sort` – column to order by (default `id`; must be a plain column name)
* `direction` – `asc` or `desc` (default `desc`)

### Limits

| Method   | Path          | Body                                           |
|----------|---------------|------------------------------------------------|
| `GET`    | `/limit`      |                                                |
| `GET`    | `/limit/<id>` |                                                |
| `POST`   | `/limit`      | `{"konsumen_id", "tenor", "limit_amount"}`     |
| `PUT`    | `/limit/<id>` | `{"tenor", "limit_amount"}`                    |
| `DELETE` | `/limit/<id>` |                                                |

On creation `tenor` must be 1, 2, 3 or 4 and `limit_amount` is a whole number
given as a string. A consumer has at most one limit per tenor. An update
changes only the amount.

### Transactions

| Method | Path                | Body          |
|--------|---------------------|---------------|
| `GET`  | `/transaction`      |               |
| `GET`  | `/transaction/<id>` |               |
| `POST` | `/transaction`      | see below     |

The body carries `konsumen_id` (a number) and the strings `nomor_kontrak`,
`otr`, `admin_fee`, `jumlah_cicilan`, `jumlah_bunga` and `nama_aset`, all
required. Amounts that are not whole numbers count as 0.

A transaction is accepted only when:

* the consumer has a limit for the tenor equal to the number of transactions
  already recorded for them (tenor 1 when there are none);
* the instalment plus admin fee plus interest equals that limit exactly;
* fewer than four transactions have been recorded for the consumer.

The stored instalment amount is that total.

## What the package does not do

The service does not create its database tables. The schema is described by
the models in `multifinance.models`; create it yourself, for example with
`Base.metadata.create_all(engine)`. There is no authentication:
`APP_SECRET_KEY` is read but not used.