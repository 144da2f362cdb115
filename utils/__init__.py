# Utils package - logging, configuration checks and date helpers
