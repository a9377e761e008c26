"""Log files that rotate by time and size and are purged by age or count."""