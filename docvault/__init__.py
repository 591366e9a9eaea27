"""DocVault: document metadata store and object-storage façade."""
