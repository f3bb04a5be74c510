import sqlite3
import os

db_path = "demo.db"
delta_path = "demo-delta.sql"

if os.path.exists(db_path):
    print(f"Database {db_path} already exists.")
else:
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    cursor.execute('''CREATE TABLE Customers (
        Id INTEGER PRIMARY KEY,
        FullName TEXT,
        Email TEXT,
        Notes TEXT,
        SignupDate TEXT
    )''')
    cursor.execute('''CREATE TABLE Staging_Import (
        Id INTEGER PRIMARY KEY,
        Payload TEXT
    )''')

    customers = [
        (1, 'Alice Smith', 'alice@example.com', 'prefers email', '2023-01-01'),
        (2, 'Bob Jones', 'bob.jones@example.org', 'card 4111111111111111 on file', '2023-02-15'),
        (3, 'Charlie Brown', None, '', '2023-03-20'),
    ]
    cursor.executemany('INSERT INTO Customers VALUES (?,?,?,?,?)', customers)
    cursor.executemany('INSERT INTO Staging_Import VALUES (?,?)', [
        (1, 'server=10.0.0.12'),
        (2, 'ok'),
    ])

    conn.commit()
    conn.close()
    print(f"Created {db_path} with sample data.")

with open(delta_path, "w", encoding="utf-8") as f:
    f.write(
        "-- demo migration\n"
        "CREATE TABLE main.Customers (\n"
        "    Id INTEGER PRIMARY KEY,\n"
        "    FullName TEXT,\n"
        "    Email TEXT,\n"
        "    Notes TEXT,\n"
        "    SignupDate TEXT\n"
        ");\n"
        "ALTER TABLE main.Staging_Import ADD COLUMN Payload TEXT;\n"
    )
print(f"Wrote {delta_path}.")
print("Run with:")
print(f"  DB_CONNECTION_STRING=sqlite:///{db_path} GUARDIAN_SQL_FILE_PATH={delta_path} guardian")
