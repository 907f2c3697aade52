"""Mirror services: repository synchronization and orchestration."""
