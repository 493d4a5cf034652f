RESUME_TEXT = """Jane Doe
jane.doe@example.com | +1 415 555 0100 | San Francisco, CA

Summary
Backend engineer focused on reliable APIs.

Experience
Senior Software Engineer at Acme Corp
Jan 2020 - Present
- Built Python microservices on AWS serving 2M users
- Reduced API latency by 35% with Redis caching

Software Engineer | Beta Labs
2016 - 2019
- Developed REST APIs with Django and PostgreSQL

Education
B.S. in Computer Science, Stanford University, 2016

Skills
Python, Django, AWS, Docker, PostgreSQL, Redis
"""

JOB_TEXT = """Senior Backend Engineer at Acme Corp
Location: San Francisco, CA
Full-time. Salary: $140k - $170k

About the role
We are building payment infrastructure used by millions of customers.

Responsibilities
- Design and build Python services on AWS
- Own reliability for PostgreSQL databases

Requirements
- 5+ years of experience with Python
- Experience with AWS and Docker
- Bachelor's degree in Computer Science or related field

Nice to have
- Kubernetes experience
"""
