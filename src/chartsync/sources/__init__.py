"""Sample sources: transports and decoders feeding module normalizers."""
