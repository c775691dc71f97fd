# tm1ctl

`tm1ctl` manages a TM1 v12 service from the command line. It stores named
hosts and users in a small JSON configuration file. With it you can create,
list and delete service instances and databases. It can also restore a
database from a local backup set.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Configuration

Settings live in `~/.tm1ctl.json`. If that file does not exist, `tm1ctl`
creates it on the first run. To use a different file, pass `--config PATH`.
That file must already exist and must hold a JSON object.

A fresh configuration has the following settings:

- one host, `local`, with the service root URL `http://localhost:4444`
- `local` as the active host
- `table` as the output format

```
tm1ctl config list
tm1ctl config list host
tm1ctl config set output-format json
```

`config list` accepts these keys: `host`, `instance`, `database`, `user` and
`output-format`. `config set` changes only `output-format`, and its value must
be `table` or `json`.

To choose the output format for a single command, pass `--output table` or
`--output json` before the sub-command:

```
tm1ctl --output json instance list
```

## Hosts

```
tm1ctl host set prod --service_root_url https://tm1.example.com \
    --root_client_id admin --root_client_secret secret
tm1ctl host list
tm1ctl host list prod
tm1ctl host use prod
tm1ctl host use
tm1ctl host delete prod
```

- To remove a single value from a host, pass its option with an empty string.
- `host use` with no name clears the active host.
- Deleting the active host also clears the active host.
- `host list` always prints JSON.

## Instances

Instance commands call the host's management API (`<service root>/manage/v1`).
They authenticate with the host's `root_client_id` and `root_client_secret`.
Each command takes `--host` and falls back to the active host.

```
tm1ctl instance list
tm1ctl instance create sales
tm1ctl instance use sales
tm1ctl instance use
tm1ctl instance delete sales --host prod
```

`instance use` records the active instance for the host in the
configuration. It does not contact the service.

## Users

```
tm1ctl user set alice --name alice --password password
tm1ctl user set alice --variables '{"region": "EMEA"}'
tm1ctl user use alice
tm1ctl user variable set region '"EMEA"'
tm1ctl user variable list
tm1ctl user variable list region --user alice
tm1ctl user list
tm1ctl user delete alice
```

- If a variable value parses as JSON, it is stored as JSON. Otherwise it is
  stored as plain text.
- To remove a field from a user, pass `--name`, `--password` or `--variables`
  with an empty string.

When a command authenticates as a user, it works out the credentials as
follows:

- It uses the name given with `--user`, or else the active user.
- If that user is configured, the stored login name and password are used.
- A `--password` given on the command line replaces the stored password.
- If the user is not configured, the name itself is the login name and
  `--password` is the password.

## Databases

Database commands call the instance API (`<service root>/<instance>/api/v1`).
They use the active host, instance and user unless you pass `--host`,
`--instance` or `--user`.

```
tm1ctl database list
tm1ctl database create planning
tm1ctl database delete planning
```

## Restore

```
tm1ctl restore ./planning.backupset --database planning
```

`restore` runs these steps:

1. It creates the database's `.backupsets` folder under `Files`, if the folder
   cannot be read.
2. It uploads the backup set there under a unique temporary name.
3. It starts the restore.
4. It deletes the temporary file, whether or not the restore succeeded.

If the temporary file cannot be deleted after a successful restore, the
command prints a warning.

## What it does not do

- The package has no notion of an active database. `config list database`
  never shows a value. `restore` always needs `--database`.
- Lists of instances and databases do not mark the active one.
- User session variables are stored in the configuration only. They are not
  sent with any request.
- `config set` can change only the output format. Hosts, users and the active
  instance are changed through their own commands.