"""Remote agent access: backend client, descriptor cache and thread binding."""
