"""Watch a Next.js site for new deployments and summarize what changed."""
