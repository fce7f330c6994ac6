"""School content API: news, trips, students and radio entries stored as JSON documents."""
